"""
Exception hierarchy for dataset builds.

Every failure raised by the decoder, the image writer, or the pipeline is a
DatasetError carrying the archive path and record index (when known), so
callers can tell which file and which record broke a run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class DatasetError(Exception):
    """Base exception for all dataset build failures."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        record_index: int | None = None,
    ) -> None:
        self.message = message
        self.path = str(path) if path is not None else None
        self.record_index = record_index
        super().__init__(self._render())

    def _render(self) -> str:
        location = []
        if self.path is not None:
            location.append(self.path)
        if self.record_index is not None:
            location.append(f"record {self.record_index}")
        if not location:
            return self.message
        return f"{', '.join(location)}: {self.message}"

    def at(self, *, path: Path | str | None = None, record_index: int | None = None):
        """Return a copy of this error with location details filled in."""
        return type(self)(
            self.message,
            path=path if path is not None else self.path,
            record_index=record_index if record_index is not None else self.record_index,
        )


class DatasetIOError(DatasetError):
    """Raised when an archive, output directory, or staging store cannot be read or written."""


class StagingError(DatasetIOError):
    """Raised when the staging store is unavailable or rejects a batch."""


class FormatError(DatasetError):
    """Raised when bytes do not match the expected record layout."""


class EncodeError(DatasetError):
    """Raised when an image or the manifest cannot be encoded or written."""


class PipelineError(DatasetError):
    """Raised after a keep-going run when one or more archives failed."""

    def __init__(self, failures: Sequence[DatasetError]) -> None:
        self.failures = list(failures)
        super().__init__(f"{len(self.failures)} archive(s) failed")

    def at(self, *, path=None, record_index=None):
        return self
