"""
Resumable import pipeline for JSON and JSONL sources.

This package contains the components that stream a source file into a
target store:

Modules:
    reader: Lazy record readers for JSON arrays and JSONL files
    checkpoint: File checkpoints holding the last processed record index
    normalize: Canonical shapes for image/taxonomy values and date parsing
    mapper: Applies a field map to one record, validates and persists it
    retry: Retry policy for transient persistence failures
    importer: Batch controller (passes, resume, checkpoint advancement)
    runner: Runs a list of migrations with error isolation
    config_loader: Reads migration definitions from YAML

Subpackages:
    stores: Collaborator interfaces and the SQLAlchemy reference stores
    fetchers: HTTP asset fetcher

Architecture:
    Each pass of the importer reads the source from the start, skips the
    records covered by the checkpoint and hands the rest to the mapper:

    1. Read - stream records without loading the file
    2. Map - resolve/create the entity, apply field handlers
    3. Persist - validate, then write with bounded retries
    4. Checkpoint - save the last processed index after each pass

Usage:
    from ingestion.checkpoint import CheckpointStore
    from ingestion.importer import JsonImporter
    from ingestion.mapper import RecordMapper

Example:
    mapper = RecordMapper(
        target_kind="Article",
        field_mappings=spec.field_mappings,
        target_store=SqlTargetStore(session),
        term_store=SqlTermStore(session),
    )
    importer = JsonImporter(
        source_path="data/articles.jsonl",
        mapper=mapper,
        checkpoint_store=CheckpointStore(".checkpoints"),
        batch_size=100,
    )
    stats = importer.process(resume=True)

Error Handling:
    All components raise the exceptions in core.exceptions. Parse errors
    and non-transient persistence errors abort the import and leave the
    last checkpoint in place.
"""

__all__ = [
    "RecordReaderFactory",
    "CheckpointStore",
    "RecordMapper",
    "RetryPolicy",
    "JsonImporter",
    "MigrationRunner",
]
