"""
Script to run the JSON migrations defined in a YAML config file
"""

import argparse
import logging
import sys

from core.config import settings
from core.database import create_db_engine, create_session_factory, get_session
from core.exceptions import MigrationConfigError
from core.logging import setup_logging
from ingestion.config_loader import load_migrations
from ingestion.fetchers.http_fetcher import HttpAssetFetcher
from ingestion.retry import RetryPolicy
from ingestion.runner import MigrationRunner
from models.base import Base

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run JSON/JSONL migrations from YAML config")
    parser.add_argument(
        "--config",
        default=settings.MIGRATIONS_CONFIG,
        help="Path to YAML migration config file"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        default=None,
        help="Stop the whole run after the first failed migration"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run all configured migrations; returns the process exit code"""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        migrations = load_migrations(args.config)
    except MigrationConfigError as e:
        logger.error(e.message)
        return 1

    if not migrations:
        logger.warning(f"No migrations defined in {args.config}")
        return 0

    engine = create_db_engine()
    Base.metadata.create_all(engine)
    session_factory = create_session_factory(engine)

    try:
        with get_session(session_factory) as session, HttpAssetFetcher() as fetcher:
            runner = MigrationRunner(
                session=session,
                checkpoint_dir=settings.CHECKPOINT_DIR,
                assets_dir=settings.ASSETS_DIR,
                asset_fetcher=fetcher,
                retry_policy=RetryPolicy(
                    max_attempts=settings.MAX_RETRIES,
                    base_delay=settings.RETRY_BASE_DELAY
                ),
                stop_on_error=args.stop_on_error
            )
            summary = runner.run(migrations)
    finally:
        engine.dispose()

    if summary.stopped:
        return 1

    logger.info("All migrations finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
