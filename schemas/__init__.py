"""
Pydantic schemas for configuration and validation.

Schemas:
    migration: Migration definitions and field mappings (FieldMapping,
        MigrationSpec, FieldKind, Transform)
    targets: Business-rule validation of mapped target entities

Usage:
    from schemas.migration import MigrationSpec, FieldMapping, FieldKind
    from schemas.targets import TARGET_VALIDATORS

Example:
    spec = MigrationSpec.model_validate({
        "file": "data/articles.jsonl",
        "class": "Article",
        "fieldMap": {
            "id": {"dest": "external_id", "type": "unique"},
            "title": {"dest": "title"},
        },
        "batchSize": 100,
    })
    assert spec.is_valid()
"""

__all__ = [
    "FieldKind",
    "Transform",
    "FieldMapping",
    "MigrationSpec",
    "ArticleValidation",
    "TARGET_VALIDATORS",
]
