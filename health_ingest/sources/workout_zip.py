# sources/workout_zip.py
from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from ..config import get_settings
from ..correlate import DETAIL_EXTENSIONS, correlate
from ..csv_tokens import parse_records
from ..models import ImportReport, IngestedWorkout, WorkoutRecord, ZipEntry
from ..normalize import normalize_workout
from ..zip_archive import decode, read_entry

logger = structlog.get_logger()


# --------------------------- Helpers ---------------------------

def is_summary_name(file_name: str, pattern: Optional[str] = None) -> bool:
    base = file_name.rsplit("/", 1)[-1]
    return fnmatch.fnmatchcase(base, pattern or get_settings().SUMMARY_PATTERN)


def _is_detail_name(file_name: str) -> bool:
    if file_name.endswith("/") or file_name.startswith("__MACOSX/"):
        return False
    base = file_name.rsplit("/", 1)[-1]
    return "." in base and base.rsplit(".", 1)[1].lower() in DETAIL_EXTENSIONS


def classify(
    entries: Sequence[ZipEntry], pattern: Optional[str] = None
) -> Tuple[Optional[ZipEntry], List[ZipEntry]]:
    """(first summary entry, detail candidates in archive order)."""
    pattern = pattern or get_settings().SUMMARY_PATTERN
    summary: Optional[ZipEntry] = None
    details: List[ZipEntry] = []
    for entry in entries:
        if is_summary_name(entry.name, pattern):
            if summary is None:
                summary = entry
            else:
                logger.debug("zip_extra_summary_ignored", name=entry.name)
            continue
        if _is_detail_name(entry.name):
            details.append(entry)
    return summary, details


def _normalize_rows(text: str, tz_name: Optional[str]) -> List[WorkoutRecord]:
    records: List[WorkoutRecord] = []
    for idx, row in enumerate(parse_records(text)):
        record = normalize_workout(row, tz_name)
        if record is None:
            logger.debug("summary_row_skipped", row=idx + 1)
            continue
        records.append(record)
    return records


# --------------------------- Glavne funkcije ---------------------------

def ingest(
    zip_bytes: bytes,
    tolerance_ms: Optional[int] = None,
    tz_name: Optional[str] = None,
    summary_pattern: Optional[str] = None,
) -> List[IngestedWorkout]:
    """
    Raw export ZIP -> one IngestedWorkout per valid summary row, in summary
    order, each with the detail files that correlate to it. A ZIP without a
    readable summary yields an empty list.
    """
    entries = decode(zip_bytes)
    summary, detail_entries = classify(entries, summary_pattern)
    if summary is None:
        logger.info("zip_no_summary", entries=len(entries))
        return []

    summary_text = read_entry(summary, zip_bytes)
    if summary_text is None:
        logger.warning("zip_summary_unreadable", name=summary.name)
        return []

    # svi detalji se dekodiraju prije korelacije
    details: List[Tuple[str, str]] = []
    for entry in detail_entries:
        text = read_entry(entry, zip_bytes)
        if text is None:
            continue
        details.append((entry.base_name, text))

    out: List[IngestedWorkout] = []
    for record in _normalize_rows(summary_text, tz_name):
        bundle = correlate(record, details, tolerance_ms)
        out.append(IngestedWorkout(record=record, details=bundle))

    logger.info("zip_ingested", summary=summary.name, workouts=len(out), detail_files=len(details))
    return out


def ingest_summary_csv(csv_text: str, tz_name: Optional[str] = None) -> List[IngestedWorkout]:
    """Summary CSV on its own: records only, no detail bundles."""
    return [IngestedWorkout(record=r, details=None) for r in _normalize_rows(csv_text, tz_name)]


def load_file(path: Path) -> ImportReport:
    """File-level entry used by the CLI; .zip bundles or a bare summary CSV."""
    report = ImportReport()
    if path.suffix.lower() == ".zip":
        workouts = ingest(path.read_bytes())
    else:
        workouts = ingest_summary_csv(path.read_text(encoding="utf-8", errors="replace"))
    report.workouts.extend(workouts)
    report.success += len(workouts)
    if not workouts:
        logger.info("no_workouts_found", file=str(path))
    return report
