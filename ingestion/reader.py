"""
Streaming record readers for JSON array and newline-delimited JSON files.

Both readers are generators: records are decoded one at a time, the file is
opened on the first ``next()`` and closed once the generator is exhausted or
closed. A reader cannot be rewound; ask the factory for a new one instead.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator

import ijson

from core.exceptions import ExtractionError, ParseError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

LINE_DELIMITED_EXTENSIONS = (".jsonl", ".ndjson")


class RecordReaderFactory:
    """
    Create record iterators for JSON and JSONL files.

    The reader is chosen by file extension: ``.jsonl``/``.ndjson`` are read
    line by line, anything else is streamed as a top-level JSON array.
    """

    def create(self, file_path: str) -> Iterator[Record]:
        path = Path(file_path)

        if path.suffix.lower() in LINE_DELIMITED_EXTENSIONS:
            return read_jsonl(path)

        return read_json_array(path)


def read_jsonl(path: Path) -> Iterator[Record]:
    """Yield one record per non-blank line"""
    try:
        handle = open(path, "r", encoding="utf-8")
    except OSError as e:
        raise ExtractionError(
            f"Failed to open JSONL file: {path}",
            context={"file_path": str(path)},
            original_exception=e
        )

    with handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()

            if not line:
                continue

            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ParseError(
                    f"Invalid JSON on line: {line}",
                    line=line,
                    context={"file_path": str(path), "line_number": line_number},
                    original_exception=e
                )

            if not isinstance(record, dict):
                raise ParseError(
                    f"Expected a JSON object on line: {line}",
                    line=line,
                    context={"file_path": str(path), "line_number": line_number}
                )

            yield record


def read_json_array(path: Path) -> Iterator[Record]:
    """Yield the elements of a top-level JSON array without loading the file"""
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise ExtractionError(
            f"Failed to open JSON file: {path}",
            context={"file_path": str(path)},
            original_exception=e
        )

    with handle:
        position = 0
        try:
            for item in ijson.items(handle, "item", use_float=True):
                if not isinstance(item, dict):
                    raise ParseError(
                        f"Expected a JSON object at array position {position}",
                        line=json.dumps(item),
                        context={"file_path": str(path), "position": position}
                    )
                position += 1
                yield item
        except ijson.JSONError as e:
            raise ParseError(
                f"Invalid JSON in {path} after {position} records",
                context={"file_path": str(path), "position": position},
                original_exception=e
            )
