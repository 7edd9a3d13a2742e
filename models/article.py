from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from models.base import Base

article_gallery = Table(
    "article_gallery",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("asset_id", Integer, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True),
)

article_categories = Table(
    "article_categories",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("term_id", Integer, ForeignKey("terms.id", ondelete="CASCADE"), primary_key=True),
)


class Article(Base):
    """
    Example import target.

    Relations:
    - hero_image: single asset (foreign key)
    - gallery: many assets
    - primary_category: single term (foreign key)
    - categories: many terms

    ``title`` is nullable at the database level; emptiness is reported by
    ``schemas.targets.ArticleValidation`` before any write is attempted.
    """
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    external_id = Column(String(255), nullable=True, unique=True, index=True)
    slug = Column(String(255), nullable=True, index=True)
    title = Column(String(500), nullable=True, index=True)
    body = Column(Text, nullable=True)
    author = Column(String(200), nullable=True)
    published_at = Column(DateTime, nullable=True)

    hero_image_id = Column(Integer, ForeignKey("assets.id"), nullable=True)
    hero_image = relationship("Asset", foreign_keys=[hero_image_id])
    gallery = relationship("Asset", secondary=article_gallery)

    primary_category_id = Column(Integer, ForeignKey("terms.id"), nullable=True)
    primary_category = relationship("Term", foreign_keys=[primary_category_id])
    categories = relationship("Term", secondary=article_categories)

    def __repr__(self) -> str:
        return f"<Article {self.id} {self.title!r}>"
