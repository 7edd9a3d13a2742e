import logging
import sys

from core.config import settings
from core.database import create_db_engine
from core.logging import setup_logging
from models.base import Base
# Import all models to ensure they are registered
from models import Article, Asset, Term  # noqa: F401

logger = logging.getLogger(__name__)


def init_database():
    logger.info("Connecting to database...")
    engine = create_db_engine(settings.DATABASE_URL)

    logger.info("Creating tables...")
    # Create all tables defined in models
    Base.metadata.create_all(engine)
    logger.info("Tables created successfully.")

    engine.dispose()


if __name__ == "__main__":
    setup_logging()
    init_database()
    sys.exit(0)
