"""
Parallel dataset build coordination.

Fans archive files out to a fixed pool of worker threads, funnels their
metadata batches into the staging store through a single writer, and emits
the manifest once every archive is done.
"""

from __future__ import annotations

import logging
import queue
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from etlcdb.errors import DatasetIOError, FormatError, PipelineError
from etlcdb.formats import CharacterLookup, RecordDecoder, RecordLayout
from etlcdb.imaging import ImageCodec, PngCodec

from .output import write_manifest
from .staging import STAGING_DIRNAME, StagingStore, StagingWriter
from .worker import ArchiveResult, process_archive

LOGGER = logging.getLogger("etlcdb.pipeline")

DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class BuildSummary:
    """
    Outcome of a successful dataset build.

    Attributes:
        manifest_path: Path of the written manifest
        archives: Number of archive files processed
        records: Number of records in the manifest
        elapsed_seconds: Wall-clock time of the whole build
    """

    manifest_path: Path
    archives: int
    records: int
    elapsed_seconds: float


def archive_paths(layout: RecordLayout, input_dir: Path) -> list[Path]:
    """
    List the archive files of a distribution, e.g. ETL9G_01 .. ETL9G_50.

    Example:
        >>> archive_paths(ETL8G, Path("ETL8G"))[:2]
        [PosixPath('ETL8G/ETL8G_01'), PosixPath('ETL8G/ETL8G_02')]
    """
    return [input_dir / layout.archive_name(i) for i in range(1, layout.file_count + 1)]


_CLOSED = object()


class WorkQueue:
    """
    FIFO of archive paths with a single producer.

    Sized to hold every path plus the close marker, so the producer never
    blocks. `get()` returns None once the queue is closed and drained.
    """

    def __init__(self, capacity: int) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=capacity + 1)
        self._closed = False

    def put(self, path: Path) -> None:
        if self._closed:
            raise ValueError("Cannot put into a closed work queue")
        try:
            self._queue.put_nowait(path)
        except queue.Full:
            raise ValueError("Work queue capacity exceeded") from None

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def get(self) -> Path | None:
        item = self._queue.get()
        if item is _CLOSED:
            # leave the marker for the other workers
            self._queue.put_nowait(_CLOSED)
            return None
        return item


class WorkerPool:
    """
    Fixed-size pool of archive worker threads.

    Each worker takes a path, processes the whole archive, and hands the
    metadata batch to the staging writer. With `fail_fast` (the default) the
    first failure stops workers from picking up new archives; archives
    already in progress run to completion.
    """

    def __init__(
        self,
        workers: int,
        *,
        decoder: RecordDecoder,
        writer: StagingWriter,
        output_dir: Path,
        output_size: tuple[int, int] | None = None,
        codec: ImageCodec | None = None,
        fail_fast: bool = True,
    ) -> None:
        if workers < 1:
            raise ValueError(f"Worker count must be at least 1, got {workers}")
        self.workers = workers
        self.decoder = decoder
        self.writer = writer
        self.output_dir = output_dir
        self.output_size = output_size
        self.codec = codec
        self.fail_fast = fail_fast
        self._abort = threading.Event()
        self._lock = threading.Lock()
        self._results: list[ArchiveResult] = []
        self._crashes: list[BaseException] = []

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def abort(self) -> None:
        """Stop handing out new archives."""
        self._abort.set()

    def run(self, paths: Sequence[Path]) -> list[ArchiveResult]:
        """
        Process every path and return the per-archive results.

        Results are in completion order. Archives skipped after an abort
        have no result.
        """
        work = WorkQueue(len(paths))
        for path in paths:
            work.put(path)
        work.close()

        threads = [
            threading.Thread(target=self._work, args=(work,), name=f"etlcdb-worker-{i}", daemon=True)
            for i in range(min(self.workers, max(len(paths), 1)))
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        if self._crashes:
            raise self._crashes[0]
        return list(self._results)

    def _work(self, work: WorkQueue) -> None:
        while True:
            path = work.get()
            if path is None or self._abort.is_set():
                return
            try:
                result = process_archive(
                    path,
                    decoder=self.decoder,
                    output_dir=self.output_dir,
                    output_size=self.output_size,
                    codec=self.codec,
                )
            except Exception as e:
                with self._lock:
                    self._crashes.append(e)
                self._abort.set()
                return

            if result.success:
                self.writer.submit(result.path, result.entries)
            elif self.fail_fast:
                self._abort.set()

            with self._lock:
                self._results.append(result)


def build_dataset(
    layout: RecordLayout,
    input_dir: Path,
    output_dir: Path,
    *,
    output_size: tuple[int, int] | None = None,
    workers: int = DEFAULT_WORKERS,
    fail_fast: bool = True,
    codec: ImageCodec | None = None,
    lookup: CharacterLookup | None = None,
    paths: Sequence[Path] | None = None,
) -> BuildSummary:
    """
    Build an image dataset and manifest from a directory of archives.

    Writes one image per record into `output_dir` and the manifest to
    `output_dir/<prefix>.json`. Metadata is staged in `output_dir/.staging`,
    which is removed when the build succeeds and left behind when it fails.

    Parameters:
        layout: Archive format layout
        input_dir: Directory containing the archive files
        output_dir: Directory for images and manifest
        output_size: Optional (width, height) for output images
        workers: Number of worker threads
        fail_fast: Abort on the first failing archive (default); when False,
            process every archive and raise PipelineError with all failures
        codec: Image codec, PNG by default
        lookup: Character lookup override
        paths: Explicit archive paths (default: the layout's standard names).
            Only the file named like the distribution's last archive is
            expected to be short.

    Returns:
        BuildSummary

    Raises:
        DatasetIOError: If an archive or the output directory is unusable
        FormatError: If an archive does not match the layout, or the record
            total differs from what the layout expects
        EncodeError: If an image or the manifest cannot be written
        PipelineError: With fail_fast=False, if any archive failed

    Example:
        >>> summary = build_dataset(ETL9G, Path("ETL9G"), Path("out/etl9g"), workers=8)
        >>> print(summary.records)
        607200
    """
    start_time = time.perf_counter()
    codec = codec or PngCodec()
    decoder = RecordDecoder(layout, lookup=lookup, extension=codec.extension)
    archive_list = list(paths) if paths is not None else archive_paths(layout, input_dir)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DatasetIOError(f"Cannot create output directory: {e.strerror or e}", path=output_dir) from e

    staging_dir = output_dir / STAGING_DIRNAME
    if staging_dir.exists():
        LOGGER.warning("stale_staging_removed", extra={"staging_dir": str(staging_dir)})
        shutil.rmtree(staging_dir)

    LOGGER.info(
        "build_started",
        extra={"format": layout.prefix, "archives": len(archive_list), "workers": workers},
    )

    store = StagingStore.open(staging_dir)
    try:
        writer = StagingWriter(store)
        pool = WorkerPool(
            workers,
            decoder=decoder,
            writer=writer,
            output_dir=output_dir,
            output_size=output_size,
            codec=codec,
            fail_fast=fail_fast,
        )
        if fail_fast:
            writer.on_error = lambda _error: pool.abort()
        writer.start()
        try:
            results = pool.run(archive_list)
        finally:
            writer.close()

        failures = [r.error for r in results if r.error is not None]
        if writer.error is not None:
            failures.append(writer.error)
        if failures:
            if fail_fast:
                raise failures[0]
            raise PipelineError(failures)

        expected = sum(layout.records_in_archive(p.name) for p in archive_list)
        staged = store.count()
        if staged != expected:
            raise FormatError(
                f"Staged {staged} records, expected {expected} "
                f"for {len(archive_list)} {layout.prefix} archive(s)",
                path=input_dir,
            )

        records = write_manifest(store, output_dir / layout.manifest_name)
    finally:
        store.close()

    elapsed = time.perf_counter() - start_time
    LOGGER.info(
        "build_done",
        extra={"format": layout.prefix, "records": records, "elapsed_seconds": round(elapsed, 3)},
    )
    return BuildSummary(
        manifest_path=output_dir / layout.manifest_name,
        archives=len(archive_list),
        records=records,
        elapsed_seconds=elapsed,
    )
