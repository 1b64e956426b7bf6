"""
Transient ordered store for decoded record metadata.

Workers finish archives in arbitrary order; the staging store buffers their
metadata on disk (SQLite) keyed by image name so the manifest can later be
emitted once, in key order. A single writer thread owns all batch commits.
"""

from __future__ import annotations

import logging
import queue
import shutil
import sqlite3
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator

from etlcdb.errors import DatasetError, StagingError

LOGGER = logging.getLogger("etlcdb.pipeline")

STAGING_DIRNAME = ".staging"
STAGING_DB_NAME = "staging.sqlite3"

Entry = tuple[str, str]


class StagingStore:
    """
    Ordered key -> value store backed by SQLite.

    Keys are write-once; committing a key twice is a StagingError because two
    records mapping to the same image name means one image overwrote the
    other on disk.

    Example:
        >>> store = StagingStore.open(Path("out/.staging"))
        >>> store.put_batch([("b.png", "{}"), ("a.png", "{}")])
        >>> [k for k, _ in store.iter_in_order()]
        ['a.png', 'b.png']
        >>> store.discard()
    """

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = directory
        target = ":memory:"
        try:
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)
                target = str(directory / STAGING_DB_NAME)
            self._conn = sqlite3.connect(target, check_same_thread=False, isolation_level=None)
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS entries (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
        except (OSError, sqlite3.Error) as e:
            raise StagingError(f"Cannot open staging store: {e}", path=directory) from e
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(cls, directory: Path) -> StagingStore:
        return cls(directory)

    @classmethod
    def in_memory(cls) -> StagingStore:
        return cls(None)

    def put_batch(self, entries: Iterable[Entry]) -> int:
        """
        Commit a batch of entries atomically.

        Either every entry of the batch is stored or none is.

        Returns:
            Number of entries committed

        Raises:
            StagingError: On a duplicate key or a storage failure
        """
        rows = list(entries)
        with self._lock:
            try:
                self._conn.execute("BEGIN")
                self._conn.executemany("INSERT INTO entries (key, value) VALUES (?, ?)", rows)
                self._conn.execute("COMMIT")
            except sqlite3.IntegrityError as e:
                self._conn.execute("ROLLBACK")
                raise StagingError(f"Duplicate staging key in batch: {e}", path=self.directory) from e
            except sqlite3.Error as e:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise StagingError(f"Staging write failed: {e}", path=self.directory) from e
        return len(rows)

    def count(self) -> int:
        with self._lock:
            (n,) = self._conn.execute("SELECT COUNT(*) FROM entries").fetchone()
        return n

    def iter_in_order(self) -> Iterator[Entry]:
        """Yield (key, value) pairs in ascending key order."""
        try:
            cursor = self._conn.execute("SELECT key, value FROM entries ORDER BY key")
            for key, value in cursor:
                yield key, value
        except sqlite3.Error as e:
            raise StagingError(f"Staging read failed: {e}", path=self.directory) from e

    def close(self) -> None:
        if not self._closed:
            self._conn.close()
            self._closed = True

    def discard(self) -> None:
        """Close the store and remove its backing directory."""
        self.close()
        if self.directory is not None and self.directory.exists():
            shutil.rmtree(self.directory)


_STOP = object()


class StagingWriter:
    """
    Single writer thread that commits per-archive batches.

    Workers hand finished batches over a queue instead of sharing a lock on
    the store; only this thread ever calls `put_batch`. The first failed
    commit is kept in `error` and reported through `on_error`; later batches
    are dropped.
    """

    def __init__(
        self,
        store: StagingStore,
        *,
        on_error: Callable[[DatasetError], None] | None = None,
    ) -> None:
        self.store = store
        self.on_error = on_error
        self.error: DatasetError | None = None
        self.committed = 0
        self._queue: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="etlcdb-staging", daemon=True)

    def start(self) -> StagingWriter:
        self._thread.start()
        return self

    def submit(self, source: Path | str, batch: list[Entry]) -> None:
        self._queue.put((source, batch))

    def close(self) -> None:
        """Flush pending batches and stop the writer thread."""
        self._queue.put(_STOP)
        self._thread.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            source, batch = item
            if self.error is not None:
                continue
            try:
                self.committed += self.store.put_batch(batch)
            except DatasetError as e:
                self.error = e.at(path=source)
                LOGGER.error("staging_commit_failed", extra={"path": str(source), "error": str(e)})
                if self.on_error:
                    self.on_error(self.error)
                continue
            LOGGER.debug("staging_batch_committed", extra={"path": str(source), "records": len(batch)})
