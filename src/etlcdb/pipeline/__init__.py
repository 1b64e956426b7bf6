"""
Pipeline module for building image datasets from ETL archives.

Provides the per-archive worker, the thread pool that fans archives out, the
staging store that orders decoded metadata, and the manifest writer.
"""

from .coordinator import (
    BuildSummary,
    WorkQueue,
    WorkerPool,
    archive_paths,
    build_dataset,
)
from .output import JsonArrayWriter, write_manifest
from .staging import StagingStore, StagingWriter
from .worker import ArchiveResult, process_archive

__all__ = [
    "BuildSummary",
    "WorkQueue",
    "WorkerPool",
    "archive_paths",
    "build_dataset",
    "JsonArrayWriter",
    "write_manifest",
    "StagingStore",
    "StagingWriter",
    "ArchiveResult",
    "process_archive",
]
