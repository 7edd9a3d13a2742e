"""
SQLAlchemy ORM models for the reference target store.

This package defines the tables the bundled SQL backend writes to:

Models:
    base: Base declarative class and shared enums (MigrationStatus)
    asset: Downloaded binaries, deduplicated by folder + file name
    term: Taxonomy terms
    article: Example import target with single and many-valued relations

Usage:
    from models import Article, Asset, Term, TARGET_KINDS
    from models.base import Base

Relationships:
    - Article → Asset (hero_image, single; gallery, many)
    - Article → Term (primary_category, single; categories, many)
"""

from models.base import Base, MigrationStatus
from models.asset import Asset
from models.term import Term
from models.article import Article

# Target kinds addressable by name from a migration's ``class`` key
TARGET_KINDS = {
    "Article": Article,
}

__all__ = [
    "Base",
    "MigrationStatus",
    "Asset",
    "Term",
    "Article",
    "TARGET_KINDS",
]
