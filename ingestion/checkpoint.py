"""
File-based checkpoints for resumable imports
"""

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from core.exceptions import CheckpointDirectoryError, CheckpointReadError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CheckpointStore:
    """
    Stores the last processed record index per source.

    Purpose:
    - Resume an import from the record after the last completed batch
    - Survive crashes: a checkpoint is only written after a batch finishes

    Design:
    - One JSON file per source, named after the md5 of the source key
    - File content is ``{"last_index": <int>}``
    - Writes go through a temp file and ``os.replace``
    - No locking; one run per source at a time
    """

    def __init__(self, checkpoint_dir: PathLike):
        self.checkpoint_dir = Path(checkpoint_dir)

        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CheckpointDirectoryError(
                f"Failed to create checkpoint directory: {self.checkpoint_dir}",
                context={"checkpoint_dir": str(self.checkpoint_dir), "operation": "mkdir"},
                original_exception=e
            )

    def file_for(self, key: str) -> Path:
        """Checkpoint path for a source key (usually the source file path)"""
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.checkpoint_dir / f"{digest}.json"

    def start_index(self, checkpoint_file: PathLike) -> int:
        """
        Index of the next record to process.

        Returns 0 when there is no usable checkpoint.
        """
        checkpoint_file = Path(checkpoint_file)

        if not checkpoint_file.exists():
            return 0

        try:
            last_index = self._read_last_index(checkpoint_file)
        except CheckpointReadError as e:
            logger.warning(f"Ignoring checkpoint, starting from 0: {e}")
            return 0

        # The saved index is the last record already processed
        return last_index + 1

    def save(self, checkpoint_file: PathLike, index: int):
        """Record ``index`` as the last successfully processed record"""
        checkpoint_file = Path(checkpoint_file)

        fd, tmp_path = tempfile.mkstemp(
            dir=str(checkpoint_file.parent),
            prefix=checkpoint_file.stem,
            suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({"last_index": index}, handle)
            os.replace(tmp_path, checkpoint_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Checkpoint saved: {checkpoint_file} last_index={index}")

    def delete(self, checkpoint_file: PathLike):
        """Remove the checkpoint; no-op when it does not exist"""
        checkpoint_file = Path(checkpoint_file)

        try:
            checkpoint_file.unlink()
        except FileNotFoundError:
            return

        logger.debug(f"Checkpoint deleted: {checkpoint_file}")

    def _read_last_index(self, checkpoint_file: Path) -> int:
        context = {"checkpoint_file": str(checkpoint_file), "operation": "read"}

        try:
            data = json.loads(checkpoint_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CheckpointReadError(
                "Checkpoint file is unreadable",
                context=context,
                original_exception=e
            )

        if not isinstance(data, dict):
            raise CheckpointReadError("Checkpoint file is not a JSON object", context=context)

        last_index = data.get("last_index", -1)
        if isinstance(last_index, bool) or not isinstance(last_index, int) or last_index < -1:
            raise CheckpointReadError(
                f"Checkpoint has invalid last_index: {last_index!r}",
                context=context
            )

        return last_index
