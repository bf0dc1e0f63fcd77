# health_ingest/cli.py
from __future__ import annotations

from pathlib import Path
from types import ModuleType
from typing import List, Optional

import typer
import structlog

from .config import get_settings
from .export import write_stats, write_workouts
from .mapping import map_workout
from .models import ImportReport
from .sources import auto_export, fitindex, workout_zip

app = typer.Typer(no_args_is_help=True, help="health-ingest CLI")
log = structlog.get_logger()


# ---------- helperi ----------

def _source_for(path: Path) -> Optional[ModuleType]:
    """Which source module reads this file; None for files we do not import."""
    suffix = path.suffix.lower()
    if suffix == ".zip":
        return workout_zip
    if suffix == ".json":
        return auto_export
    if suffix == ".csv":
        if fitindex.is_fitindex_file_name(path.name):
            return fitindex
        if workout_zip.is_summary_name(path.name):
            return workout_zip
    return None


def _collect(folder: Path) -> List[Path]:
    return [p for p in sorted(folder.rglob("*")) if p.is_file() and _source_for(p) is not None]


def _import_one(path: Path, write: bool, delete: bool) -> ImportReport:
    source = _source_for(path)
    if source is None:
        raise typer.BadParameter(f"Ne znam uvesti '{path.name}' (.zip, .json, Workouts-*.csv, FITINDEX*.csv)")

    try:
        report = source.load_file(path)
        if write:
            settings = get_settings()
            if report.workouts:
                write_workouts(Path(settings.WORKOUTS_OUTPUT), report.workouts)
            if report.stats:
                write_stats(Path(settings.STATS_OUTPUT), report.stats)
    except (OSError, ValueError) as e:
        log.error("import_failed", file=str(path), error=str(e))
        typer.echo(f"[ERR] {path}: {e}")
        return ImportReport(errors=1)

    processed = bool(report.workouts or report.stats)
    if processed and delete:
        try:
            path.unlink()
            log.info("source_deleted", file=str(path))
        except OSError as e:
            log.warning("source_delete_failed", file=str(path), error=str(e))
    return report


# ---------- komande ----------

@app.command("diag")
def diag() -> None:
    """Print the effective settings."""
    s = get_settings()
    for key, value in s.model_dump().items():
        typer.echo(f"{key}: {value}")


@app.command()
def ingest(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Export ZIP, summary CSV, AutoExport JSON or FITINDEX CSV"),
    write: bool = typer.Option(True, "--write/--no-write", help="Write rows to the configured CSV outputs"),
) -> None:
    """Import a single export file."""
    report = _import_one(path, write=write, delete=False)
    for item in report.workouts:
        r = item.record
        slots = ", ".join(sorted(item.details.slots())) if item.details else "-"
        fields = " ".join(f"{k}={v}" for k, v in map_workout(r).items())
        typer.echo(f"{r.start.isoformat()}  {r.type}  {r.duration_seconds}s  [{slots}]  {fields}")
    typer.echo(report.summary())


@app.command()
def scan(
    folder: Optional[Path] = typer.Option(None, help="Folder to scan (default: SCAN_FOLDER)"),
    delete: Optional[bool] = typer.Option(None, "--delete/--keep", help="Delete sources that imported (default: DELETE_SOURCE_AFTER_IMPORT)"),
) -> None:
    """Import every recognised export file under a folder."""
    settings = get_settings()
    root = folder or Path(settings.SCAN_FOLDER)
    if not root.is_dir():
        raise typer.BadParameter(f"'{root}' nije folder")
    if delete is None:
        delete = settings.DELETE_SOURCE_AFTER_IMPORT

    files = _collect(root)
    if not files:
        typer.echo(f"No import files found in {root}")
        return

    typer.echo(f"Scanning {len(files)} file(s)...")
    total = ImportReport()
    for path in files:
        total.merge(_import_one(path, write=True, delete=delete))
    typer.echo(total.summary())


if __name__ == "__main__":
    app()
