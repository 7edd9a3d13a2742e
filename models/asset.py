from sqlalchemy import Column, Integer, String, DateTime, Index, UniqueConstraint
from datetime import datetime, timezone
from models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Asset(Base):
    """
    A downloaded binary (usually an image) stored under a folder.

    Design:
    - ``name`` is the basename of the source URL path and acts as the
      deduplication key inside a folder
    - the binary itself lives on disk at ``path``
    """
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)

    folder = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)

    path = Column(String(1024), nullable=False)
    size = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("folder", "name", name="uq_asset_folder_name"),
        Index("idx_asset_folder", "folder"),
    )

    def __repr__(self) -> str:
        return f"<Asset {self.folder}/{self.name}>"
