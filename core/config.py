"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    DATABASE_URL: str = "sqlite:///./json_migrate.db"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Migration Configuration
    MIGRATIONS_CONFIG: str = "config/json-migrations.yml"
    CHECKPOINT_DIR: str = ".checkpoints/json-import"
    DEFAULT_BATCH_SIZE: Optional[int] = 500
    DEFAULT_ASSET_FOLDER: str = "ImportedImages"

    # Persistence retries
    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 0.2

    # Assets
    ASSETS_DIR: str = "assets"
    ASSET_FETCH_TIMEOUT: float = 60.0
    ASSET_USER_AGENT: str = "json-migrate/1.0"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
