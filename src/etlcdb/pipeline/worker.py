"""
Single archive processing worker.

Decodes every record of one archive file, writes each sample image, and
collects the metadata batch that is later committed to the staging store.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from etlcdb.errors import DatasetError
from etlcdb.formats import RecordDecoder
from etlcdb.formats.archive import iter_windows, load_archive_bytes
from etlcdb.imaging import ImageCodec, materialize_image

from .staging import Entry

LOGGER = logging.getLogger("etlcdb.pipeline")


@dataclass
class ArchiveResult:
    """
    Result of processing a single archive file.

    Attributes:
        path: Archive file path
        entries: (image_name, metadata JSON) pairs, in file order
        elapsed_seconds: Total processing time
        error: Failure that stopped the archive, if any
    """

    path: Path
    entries: list[Entry] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    error: DatasetError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def records(self) -> int:
        return len(self.entries)


def process_archive(
    path: Path,
    *,
    decoder: RecordDecoder,
    output_dir: Path,
    output_size: tuple[int, int] | None = None,
    codec: ImageCodec | None = None,
) -> ArchiveResult:
    """
    Process one archive: decode records, write images, collect metadata.

    The whole file is read in one go. Each record's pixel buffer is released
    as soon as its image is on disk, so at most one decoded image is alive
    per worker.

    Parameters:
        path: Archive file path
        decoder: Decoder for the archive's layout
        output_dir: Directory receiving the sample images
        output_size: Optional (width, height) to resize images to
        codec: Image codec, PNG by default

    Returns:
        ArchiveResult with the metadata batch, or with `error` set on the
        first IO, format or encode failure (the batch is then empty)
    """
    start_time = time.perf_counter()
    layout = decoder.layout
    native_size = (layout.sample_width, layout.sample_height)

    LOGGER.info("archive_reading", extra={"path": str(path)})

    entries: list[Entry] = []
    try:
        data = load_archive_bytes(path)
        for i, window in iter_windows(data, layout.record_size, source=path):
            record = decoder.decode(window, source=path, record_index=i)
            try:
                materialize_image(
                    record.pixels,
                    name=record.image_name,
                    size=native_size,
                    output_dir=output_dir,
                    output_size=output_size,
                    codec=codec,
                )
            except DatasetError as e:
                raise e.at(path=path, record_index=i) from e
            record.release_pixels()
            entries.append((record.key, record.metadata_json()))
    except DatasetError as e:
        elapsed = time.perf_counter() - start_time
        LOGGER.error(
            "archive_failed",
            extra={"path": str(path), "error": str(e), "elapsed_seconds": round(elapsed, 3)},
        )
        return ArchiveResult(path=path, elapsed_seconds=elapsed, error=e)

    elapsed = time.perf_counter() - start_time
    LOGGER.info(
        "archive_done",
        extra={"path": str(path), "records": len(entries), "elapsed_seconds": round(elapsed, 3)},
    )
    return ArchiveResult(path=path, entries=entries, elapsed_seconds=elapsed)
