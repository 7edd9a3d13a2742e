from sqlalchemy import Column, Integer, String
from models.base import Base


class Term(Base):
    """Taxonomy term, identified by its ``name``"""
    __tablename__ = "terms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Term {self.name}>"
