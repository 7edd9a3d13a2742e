# ============================================================================
# File: ingestion/importer.py
# Description: Batch controller driving read -> map -> persist -> checkpoint
# ============================================================================
"""
JSON importer - resumable, batched import of one JSON/JSONL source.

Each pass opens a fresh reader over the whole source, skips the records
already covered by the checkpoint, maps up to ``batch_size`` records and
then saves the checkpoint at the absolute index of the last record it
processed. Passes repeat until a pass comes up short; the checkpoint is
deleted once the source is fully imported.

A crash between a pass's mapping and its checkpoint save replays at most
one batch on restart. Unique field mappings make that replay idempotent.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ingestion.checkpoint import CheckpointStore
from ingestion.mapper import RecordMapper, RecordOutcome
from ingestion.reader import RecordReaderFactory

logger = logging.getLogger(__name__)


@dataclass
class ImportStats:
    """Counters for one ``JsonImporter.process`` run"""
    source_path: str
    start_index: int = 0
    passes: int = 0
    records_processed: int = 0
    records_persisted: int = 0
    records_invalid: int = 0
    records_unconfirmed: int = 0

    def record(self, outcome: RecordOutcome):
        self.records_processed += 1
        if outcome == RecordOutcome.PERSISTED:
            self.records_persisted += 1
        elif outcome == RecordOutcome.INVALID:
            self.records_invalid += 1
        elif outcome == RecordOutcome.UNCONFIRMED:
            self.records_unconfirmed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_path": self.source_path,
            "start_index": self.start_index,
            "passes": self.passes,
            "records_processed": self.records_processed,
            "records_persisted": self.records_persisted,
            "records_invalid": self.records_invalid,
            "records_unconfirmed": self.records_unconfirmed,
        }


class JsonImporter:
    """
    Orchestrates the import of one source file.

    Responsibilities:
    - Pace the import in passes of ``batch_size`` records
    - Resume from the checkpoint of an interrupted run
    - Advance the checkpoint only after a pass completes
    - Delete the checkpoint when the source is exhausted
    """

    def __init__(
        self,
        source_path: str,
        mapper: RecordMapper,
        checkpoint_store: CheckpointStore,
        reader_factory: Optional[RecordReaderFactory] = None,
        batch_size: Optional[int] = None
    ):
        self.source_path = str(source_path)
        self.mapper = mapper
        self.checkpoint_store = checkpoint_store
        self.reader_factory = reader_factory or RecordReaderFactory()
        self.batch_size = batch_size or None
        self._stats: Optional[ImportStats] = None

    def process(self, resume: bool = False) -> ImportStats:
        """
        Import the whole source, one pass at a time.

        Args:
            resume: Continue from an existing checkpoint on the first pass.
                Later passes always resume from the checkpoint the
                previous pass saved.

        Returns:
            ImportStats for the run

        Raises:
            ParseError: Malformed record; the pass is aborted
            ValidationError: Invalid record with stop_on_error set
            Exception: Non-transient persistence errors
        """
        checkpoint_file = self.checkpoint_store.file_for(self.source_path)
        self._stats = ImportStats(source_path=self.source_path)

        while True:
            processed = self.process_batch(checkpoint_file, resume)
            self._stats.passes += 1
            resume = True

            if not self.batch_size or processed < self.batch_size:
                break

        logger.info(
            f"Finished import of {self.source_path}: "
            f"processed={self._stats.records_processed}, "
            f"persisted={self._stats.records_persisted}, "
            f"invalid={self._stats.records_invalid}, "
            f"unconfirmed={self._stats.records_unconfirmed}"
        )

        self.checkpoint_store.delete(checkpoint_file)
        logger.debug(f"Deleted checkpoint file {checkpoint_file}")

        return self._stats

    def process_batch(self, checkpoint_file: Path, resume: bool) -> int:
        """
        Run one pass and return the number of records it processed.

        Saves the checkpoint when batching is enabled and the pass processed
        at least one record.
        """
        start_index = self.checkpoint_store.start_index(checkpoint_file) if resume else 0
        if start_index > 0:
            logger.info(f"Resuming {self.source_path} from checkpoint: start_index={start_index}")
        else:
            logger.debug(f"Starting new pass over {self.source_path}. resume={resume}, start_index=0")

        if self._stats is not None and self._stats.passes == 0:
            self._stats.start_index = start_index

        index = 0
        processed_in_batch = 0

        records = self.reader_factory.create(self.source_path)
        try:
            for record in records:
                if index < start_index:
                    index += 1
                    continue

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(f"Processing record #{index}: {json.dumps(record, default=str)}")

                outcome = self.mapper.process(record)
                if self._stats is not None:
                    self._stats.record(outcome)

                processed_in_batch += 1
                index += 1

                if self.batch_size and processed_in_batch >= self.batch_size:
                    logger.debug(
                        f"Batch size {self.batch_size} reached at record #{index - 1}, stopping pass"
                    )
                    break
        finally:
            close = getattr(records, "close", None)
            if close is not None:
                close()

        if self.batch_size and processed_in_batch > 0:
            self.checkpoint_store.save(checkpoint_file, index - 1)
            logger.info(f"Checkpoint saved for {self.source_path}: last_index={index - 1}")

        return processed_in_batch
