"""
Pydantic schemas for migration definitions and field mappings
"""

import enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, validator
from core.config import settings


class FieldKind(str, enum.Enum):
    """How a source field is written onto the target entity"""
    SCALAR = "scalar"
    UNIQUE = "unique"
    IMAGES = "images"
    TAXONOMY = "taxonomy"


class Transform(str, enum.Enum):
    """Value transforms available to scalar mappings"""
    DATE = "date"


RELATION_KINDS = (FieldKind.IMAGES, FieldKind.TAXONOMY)


class FieldMapping(BaseModel):
    """
    Mapping of one source field onto the target entity.

    ``dest`` is an attribute name for scalar/unique mappings and a relation
    name for images/taxonomy mappings.
    """

    source_field: str = Field(..., min_length=1)
    field_type: FieldKind = Field(FieldKind.SCALAR, alias="type")
    dest: Optional[str] = None
    transform: Optional[Transform] = None
    input_format: Optional[str] = None
    multiple: bool = False
    title_field: str = "name"

    @validator("dest", always=True)
    def require_dest_for_relations(cls, v, values):
        """Relations and unique lookups have nothing to write without a dest"""
        if v is not None:
            v = v.strip() or None
        if v is None and values.get("field_type") in RELATION_KINDS + (FieldKind.UNIQUE,):
            raise ValueError(
                f"{values['field_type'].value} mapping requires a 'dest'"
            )
        return v

    class Config:
        populate_by_name = True


class MigrationSpec(BaseModel):
    """
    One migration: a JSON/JSONL source, a target kind and its field map.

    Mirrors an entry of the ``JsonMigrations`` list in the YAML config.
    """

    file: Optional[str] = None
    target_kind: Optional[str] = Field(None, alias="class")
    field_mappings: List[FieldMapping] = Field(default_factory=list, alias="fieldMap")
    folder: str = Field(default_factory=lambda: settings.DEFAULT_ASSET_FOLDER)
    batch_size: Optional[int] = Field(
        default_factory=lambda: settings.DEFAULT_BATCH_SIZE,
        alias="batchSize",
        ge=0
    )
    resume: bool = True
    stop_on_error: bool = Field(False, alias="stopOnError")

    @validator("field_mappings", pre=True)
    def expand_field_map(cls, v):
        """Accept the YAML form ``{source_field: {dest: ..., type: ...}}``"""
        if v is None:
            return []
        if isinstance(v, dict):
            expanded = []
            for source_field, options in v.items():
                options = dict(options or {})
                options["source_field"] = source_field
                expanded.append(options)
            return expanded
        return v

    def is_valid(self) -> bool:
        """Check if the essential migration parameters are present."""
        return bool(self.file) and bool(self.target_kind) and bool(self.field_mappings)

    def describe(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "target_kind": self.target_kind,
            "batch_size": self.batch_size,
            "resume": self.resume,
            "stop_on_error": self.stop_on_error,
        }

    class Config:
        populate_by_name = True
