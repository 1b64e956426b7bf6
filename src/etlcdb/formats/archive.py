"""
Whole-archive reading.

Archives are plain concatenations of fixed-size records with no header or
delimiter. A file is loaded into memory in one read and sliced into
record-sized windows.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from etlcdb.errors import DatasetIOError, FormatError

from .decoder import RecordDecoder
from .labels import CharacterLookup
from .layouts import RecordLayout
from .models import Record


def load_archive_bytes(path: Path) -> bytes:
    """
    Read an archive file completely.

    Raises:
        DatasetIOError: If the file cannot be opened or read
    """
    try:
        return path.read_bytes()
    except OSError as e:
        raise DatasetIOError(f"Cannot read archive: {e.strerror or e}", path=path) from e


def iter_windows(
    data: bytes, record_size: int, *, source: Path | str | None = None
) -> Iterator[tuple[int, memoryview]]:
    """
    Yield (record_index, window) pairs over concatenated records.

    Raises:
        FormatError: If the data ends with a partial record
    """
    view = memoryview(data)
    full, tail = divmod(len(view), record_size)
    for i in range(full):
        start = i * record_size
        yield i, view[start : start + record_size]
    if tail:
        raise FormatError(
            f"Archive ends with a truncated record ({tail} of {record_size} bytes)",
            path=source,
            record_index=full,
        )


def read_archive(
    path: Path | str,
    layout: RecordLayout,
    *,
    lookup: CharacterLookup | None = None,
) -> list[Record]:
    """
    Decode every record of one archive file, keeping pixel buffers in memory.

    Parameters:
        path: Archive file path
        layout: Layout of the archive's format
        lookup: Optional character lookup override

    Returns:
        Records in file order

    Raises:
        DatasetIOError: If the file cannot be read
        FormatError: If any record does not match the layout
    """
    path = Path(path)
    decoder = RecordDecoder(layout, lookup=lookup)
    data = load_archive_bytes(path)
    return [
        decoder.decode(window, source=path, record_index=i)
        for i, window in iter_windows(data, layout.record_size, source=path)
    ]
