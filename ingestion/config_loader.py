"""
Load migration definitions from YAML
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import MigrationConfigError
from schemas.migration import MigrationSpec

logger = logging.getLogger(__name__)

MIGRATIONS_KEY = "JsonMigrations"


def load_migrations(config_path: str) -> List[Dict[str, Any]]:
    """
    Read the raw migration entries of a YAML config file.

    The file holds a mapping with a ``JsonMigrations`` list; each entry
    describes one migration (file, class, fieldMap, ...).
    """
    path = Path(config_path)
    if not path.is_file():
        raise MigrationConfigError(
            f"Config file not found: {config_path}",
            context={"config_path": str(path)}
        )

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        raise MigrationConfigError(
            f"Config file is not valid YAML: {config_path}",
            context={"config_path": str(path)},
            original_exception=e
        )

    if data is None:
        return []

    if not isinstance(data, dict):
        raise MigrationConfigError(
            f"Config file must contain a mapping: {config_path}",
            context={"config_path": str(path)}
        )

    migrations = data.get(MIGRATIONS_KEY) or []
    if not isinstance(migrations, list):
        raise MigrationConfigError(
            f"'{MIGRATIONS_KEY}' must be a list",
            context={"config_path": str(path)}
        )

    logger.debug(f"Loaded {len(migrations)} migrations from {config_path}")
    return migrations


def parse_migration(raw: Dict[str, Any], index: Optional[int] = None) -> MigrationSpec:
    """Validate one raw migration entry"""
    if not isinstance(raw, dict):
        raise MigrationConfigError(
            "Migration entry must be a mapping",
            context={"migration_index": index}
        )

    try:
        return MigrationSpec.model_validate(raw)
    except PydanticValidationError as e:
        raise MigrationConfigError(
            f"Invalid migration definition: {e}",
            context={"migration_index": index},
            original_exception=e
        )
