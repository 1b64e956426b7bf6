"""
Manifest output.

The manifest is a single JSON array, written incrementally: elements are
streamed straight from the staging store so the whole dataset never has to be
held in memory, and the array encoder closes itself without needing to know
the element count up front.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TextIO

from etlcdb.errors import EncodeError

from .staging import StagingStore

LOGGER = logging.getLogger("etlcdb.pipeline")


class JsonArrayWriter:
    """
    Incremental JSON array encoder.

    Writes "[", then each element on its own line separated by ",\\n", then
    "]". The separator is emitted before every element except the first, so
    the output is well-formed however many elements are written.

    Example:
        >>> with path.open("w") as f, JsonArrayWriter(f) as arr:
        ...     arr.write({"a": 1})
        ...     arr.write_raw('{"a": 2}')
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self.count = 0
        self._opened = False
        self._closed = False

    def __enter__(self) -> JsonArrayWriter:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def open(self) -> None:
        if not self._opened:
            self._stream.write("[\n")
            self._opened = True

    def write_raw(self, element: str) -> None:
        """Append an element that is already encoded JSON."""
        self.open()
        if self.count:
            self._stream.write(",\n")
        self._stream.write(element)
        self.count += 1

    def write(self, element: Any) -> None:
        self.write_raw(json.dumps(element, ensure_ascii=False))

    def close(self) -> None:
        if self._closed:
            return
        self.open()
        if self.count:
            self._stream.write("\n")
        self._stream.write("]\n")
        self._closed = True


def write_manifest(store: StagingStore, manifest_path: Path) -> int:
    """
    Drain the staging store into a manifest file, then discard the store.

    Entries are written in ascending key (image name) order.

    Parameters:
        store: Staging store holding metadata JSON per image name
        manifest_path: Output JSON file

    Returns:
        Number of records written

    Raises:
        EncodeError: If the manifest cannot be written
        StagingError: If the store cannot be read
    """
    try:
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        with manifest_path.open("w", encoding="utf-8") as f:
            with JsonArrayWriter(f) as arr:
                for _key, value in store.iter_in_order():
                    arr.write_raw(value)
            count = arr.count
    except OSError as e:
        raise EncodeError(f"Cannot write manifest: {e.strerror or e}", path=manifest_path) from e

    store.discard()
    LOGGER.info("manifest_written", extra={"manifest_path": str(manifest_path), "records": count})
    return count
