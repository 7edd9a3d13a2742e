"""
Core utilities and configuration for the JSON migration pipeline.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Engine and session management for the reference target store
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_db_engine, create_session_factory, get_session
    from core.exceptions import ParseError, PersistenceError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging(debug=True)

    # Get database session
    engine = create_db_engine()
    with get_session(create_session_factory(engine)) as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "create_db_engine",
    "create_session_factory",
    "get_session",
    "setup_logging",
    # Exceptions
    "MigrationException",
    "ExtractionError",
    "ParseError",
    "TransformationError",
    "ValidationError",
    "MappingError",
    "AssetFetchError",
    "LoadError",
    "PersistenceError",
    "CheckpointError",
    "CheckpointReadError",
    "CheckpointDirectoryError",
    "MigrationConfigError",
    "RetryableError",
    "NonRetryableError",
]
