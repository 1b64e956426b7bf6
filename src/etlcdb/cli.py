"""
etlcdb CLI

Commands:
- build: Decode a directory of archives into images and a manifest
- inspect: Decode a single archive file and print its records
- formats: List known archive layouts
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer

from etlcdb.errors import DatasetError, PipelineError
from etlcdb.formats import LAYOUTS, get_layout, read_archive
from etlcdb.pipeline import build_dataset
from etlcdb.pipeline.coordinator import DEFAULT_WORKERS

app = typer.Typer(add_completion=False, help="ETL Character Database tooling")


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        # Include any custom attributes passed via `extra=`.
        reserved = {
            "name","msg","args","levelname","levelno","pathname","filename","module",
            "exc_info","exc_text","stack_info","lineno","funcName","created","msecs",
            "relativeCreated","thread","threadName","processName","process","taskName",
        }
        for k, v in record.__dict__.items():
            if k in reserved or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except TypeError:
                payload[k] = repr(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str) -> logging.Logger:
    logger = logging.getLogger("etlcdb")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def _resolve_layout(name: str):
    try:
        return get_layout(name)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="FORMAT") from e


def _default_workers() -> int:
    raw = os.getenv("ETLCDB_WORKERS")
    if raw is None:
        return DEFAULT_WORKERS
    try:
        return int(raw)
    except ValueError:
        raise typer.BadParameter(f"ETLCDB_WORKERS must be an integer, got {raw!r}") from None


@app.command("build")
def build_cmd(
    format_name: str = typer.Argument(..., metavar="FORMAT", help="Archive format (etl8g, etl9g)"),
    input_dir: Path = typer.Argument(..., help="Directory containing the archive files"),
    output_dir: Path = typer.Argument(..., help="Output directory for images and manifest"),
    width: int | None = typer.Option(None, "--width", help="Output image width (default: native)"),
    height: int | None = typer.Option(None, "--height", help="Output image height (default: native)"),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help=f"Parallel workers (env ETLCDB_WORKERS, default {DEFAULT_WORKERS})"
    ),
    fail_fast: bool = typer.Option(
        True, "--fail-fast/--keep-going",
        help="Abort on the first failing archive, or process all and report every failure",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
) -> None:
    """
    Decode every archive of a distribution into PNG images and one JSON manifest.

    Archives are expected as INPUT_DIR/<PREFIX>_01 .. <PREFIX>_NN.

    Example:
        etlcdb build etl9g ETL9G/ out/etl9g --workers 8 --width 64 --height 64
    """
    setup_logging(log_level)
    layout = _resolve_layout(format_name)

    input_dir = input_dir.expanduser()
    output_dir = output_dir.expanduser()

    if not input_dir.is_dir():
        typer.echo(f"Error: Input directory not found: {input_dir}", err=True)
        raise typer.Exit(code=1)

    output_size = None
    if width is not None or height is not None:
        output_size = (width or layout.sample_width, height or layout.sample_height)

    effective_workers = workers if workers is not None else _default_workers()
    if effective_workers < 1:
        raise typer.BadParameter("Worker count must be at least 1", param_hint="--workers")

    typer.echo(
        f"Building {layout.prefix} dataset from {layout.file_count} archive(s) "
        f"with {effective_workers} worker(s)"
    )

    try:
        summary = build_dataset(
            layout,
            input_dir,
            output_dir,
            output_size=output_size,
            workers=effective_workers,
            fail_fast=fail_fast,
        )
    except PipelineError as e:
        typer.echo(f"Failed archives ({len(e.failures)}):", err=True)
        for failure in e.failures:
            typer.echo(f"  - {failure}", err=True)
        raise typer.Exit(code=1)
    except DatasetError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"\n{'='*60}")
    typer.echo("Summary:")
    typer.echo(f"  Archives processed: {summary.archives}")
    typer.echo(f"  Records: {summary.records}")
    typer.echo(f"  Manifest: {summary.manifest_path}")
    typer.echo(f"  Elapsed: {summary.elapsed_seconds:.1f}s")


@app.command("inspect")
def inspect_cmd(
    format_name: str = typer.Argument(..., metavar="FORMAT", help="Archive format (etl8g, etl9g)"),
    archive: Path = typer.Argument(..., help="Single archive file"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Print at most N records"),
) -> None:
    """Decode one archive file and print each record's metadata as a JSON line."""
    layout = _resolve_layout(format_name)
    try:
        records = read_archive(archive.expanduser(), layout)
    except DatasetError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    shown = records if limit is None else records[:limit]
    for record in shown:
        typer.echo(record.metadata_json())
    typer.echo(f"{len(records)} record(s) in {archive}", err=True)


@app.command("formats")
def formats_cmd() -> None:
    """List known archive layouts."""
    for name, layout in sorted(LAYOUTS.items()):
        typer.echo(
            f"{name}: {layout.file_count} files, {layout.records_per_file} records/file "
            f"(last file {layout.last_file_record_count}), {layout.record_size} bytes/record, "
            f"{layout.sample_width}x{layout.sample_height} samples"
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
