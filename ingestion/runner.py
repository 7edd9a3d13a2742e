# ============================================================================
# File: ingestion/runner.py
# Description: Runs a list of migrations with per-migration error isolation
# ============================================================================
"""
Migration Runner - runs one or more JSON migrations in order.

This module provides orchestration over ``JsonImporter`` with:
- Validation of each migration definition before it runs
- Error isolation between migrations
- An orchestration-level stop-on-error switch
- A report per migration for the caller (CLI exit code, logs)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from core.exceptions import MigrationConfigError
from ingestion.checkpoint import CheckpointStore
from ingestion.config_loader import parse_migration
from ingestion.importer import JsonImporter
from ingestion.mapper import RecordMapper
from ingestion.retry import RetryPolicy
from ingestion.stores.base import AssetFetcher
from ingestion.stores.sql_store import SqlAssetStore, SqlTargetStore, SqlTermStore
from models.base import MigrationStatus
from schemas.migration import MigrationSpec

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Outcome of one migration"""
    index: int
    target_kind: Optional[str]
    file: Optional[str]
    status: MigrationStatus
    stats: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Outcome of a whole run"""
    reports: List[MigrationReport] = field(default_factory=list)
    stopped: bool = False

    @property
    def failed(self) -> List[MigrationReport]:
        return [r for r in self.reports if r.status == MigrationStatus.FAILED]


class MigrationRunner:
    """
    Migration orchestrator

    Responsibilities:
    - Turn raw definitions into MigrationSpec objects
    - Skip definitions missing file, class or fieldMap
    - Build the stores, mapper and importer for each migration
    - Decide whether a failed migration stops the run

    ``stop_on_error`` applies to the run as a whole. When left as None,
    each migration's own ``stop_on_error`` flag decides.
    """

    def __init__(
        self,
        session: Session,
        checkpoint_dir: str,
        assets_dir: str,
        asset_fetcher: Optional[AssetFetcher] = None,
        retry_policy: Optional[RetryPolicy] = None,
        stop_on_error: Optional[bool] = None
    ):
        self.session = session
        self.checkpoint_store = CheckpointStore(checkpoint_dir)
        self.assets_dir = assets_dir
        self.asset_fetcher = asset_fetcher
        self.retry_policy = retry_policy or RetryPolicy()
        self.stop_on_error = stop_on_error

    def run(self, migrations: Iterable[Union[Dict[str, Any], MigrationSpec]]) -> RunSummary:
        summary = RunSummary()

        for index, migration in enumerate(migrations):
            try:
                spec = migration if isinstance(migration, MigrationSpec) else parse_migration(migration, index)
            except MigrationConfigError as e:
                logger.error(f"Migration #{index} has an invalid definition: {e.message}")
                summary.reports.append(MigrationReport(
                    index=index,
                    target_kind=None,
                    file=None,
                    status=MigrationStatus.FAILED,
                    error=e.message
                ))
                if self.stop_on_error:
                    summary.stopped = True
                    break
                continue

            report = self.run_single(spec, index)
            summary.reports.append(report)

            if report.status == MigrationStatus.FAILED and self._should_stop(spec):
                logger.warning("Stopping due to stop_on_error flag")
                summary.stopped = True
                break

        logger.info(
            f"Run finished: {len(summary.reports)} migrations, "
            f"{len(summary.failed)} failed, stopped={summary.stopped}"
        )
        return summary

    def run_single(self, spec: MigrationSpec, index: int = 0) -> MigrationReport:
        if not spec.is_valid():
            logger.error(f"Migration #{index} missing file, class, or fieldMap; skipping")
            return MigrationReport(
                index=index,
                target_kind=spec.target_kind,
                file=spec.file,
                status=MigrationStatus.SKIPPED
            )

        logger.info(
            f"Starting migration for {spec.target_kind} | file={spec.file} | "
            f"batch_size={spec.batch_size} | resume={spec.resume}"
        )

        try:
            importer = self.create_importer(spec)
            stats = importer.process(spec.resume)
        except Exception as e:
            logger.error(f"Error migrating {spec.target_kind}: {e}")
            self.session.rollback()
            return MigrationReport(
                index=index,
                target_kind=spec.target_kind,
                file=spec.file,
                status=MigrationStatus.FAILED,
                error=str(e)
            )

        status = MigrationStatus.SUCCESS
        if stats.records_invalid or stats.records_unconfirmed:
            status = MigrationStatus.PARTIAL

        logger.info(f"Completed migration for {spec.target_kind}: {status.value}")
        return MigrationReport(
            index=index,
            target_kind=spec.target_kind,
            file=spec.file,
            status=status,
            stats=stats.to_dict()
        )

    def create_importer(self, spec: MigrationSpec) -> JsonImporter:
        """Build the importer for one migration (override in tests)"""
        mapper = RecordMapper(
            target_kind=spec.target_kind,
            field_mappings=spec.field_mappings,
            target_store=SqlTargetStore(self.session),
            term_store=SqlTermStore(self.session),
            asset_store=SqlAssetStore(self.session, self.assets_dir),
            asset_fetcher=self.asset_fetcher,
            asset_folder=spec.folder,
            stop_on_error=spec.stop_on_error,
            retry_policy=self.retry_policy
        )
        return JsonImporter(
            source_path=spec.file,
            mapper=mapper,
            checkpoint_store=self.checkpoint_store,
            batch_size=spec.batch_size
        )

    def _should_stop(self, spec: MigrationSpec) -> bool:
        if self.stop_on_error is not None:
            return self.stop_on_error
        return spec.stop_on_error
