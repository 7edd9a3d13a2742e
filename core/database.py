"""
Database session management with SQLAlchemy
"""

from contextlib import contextmanager
from typing import Iterator, Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def create_db_engine(database_url: Optional[str] = None) -> Engine:
    """Create engine for the target store"""
    return create_engine(
        database_url or settings.DATABASE_URL,
        echo=settings.ENVIRONMENT == "development" and settings.DEBUG,
        future=True
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to ``engine``"""
    return sessionmaker(
        engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False
    )


@contextmanager
def get_session(session_factory: sessionmaker) -> Iterator[Session]:
    """Get database session"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
