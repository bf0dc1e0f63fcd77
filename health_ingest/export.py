# health_ingest/export.py
from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, List, Optional, Sequence

import structlog

from . import STATS_HEADER, WORKOUT_HEADER
from .models import IngestedWorkout, Quantity, StatsRow
from .utils import seconds_to_minutes, workout_category

logger = structlog.get_logger()

WORKOUT_KEY_COLUMNS = 2
STATS_KEY_COLUMNS = 3


def _value(q: Optional[Quantity]) -> Optional[float]:
    return q.value if q else None


def _unit(q: Optional[Quantity]) -> Optional[str]:
    return q.unit if q else None


def _count(series) -> Optional[int]:
    return len(series) if series is not None else None


def workout_row(item: IngestedWorkout) -> List[Any]:
    # REDOSLIJED MORA ODGOVARATI WORKOUT_HEADER
    r = item.record
    d = item.details
    return [
        r.start.isoformat(),
        r.type,
        workout_category(r.type),
        r.end.isoformat() if r.end else None,
        r.duration_seconds,
        seconds_to_minutes(r.duration_seconds),
        _value(r.active_energy),
        _unit(r.active_energy),
        _value(r.distance),
        _unit(r.distance),
        _value(r.avg_heart_rate),
        _value(r.max_heart_rate),
        _value(r.step_count),
        _count(d.heart_rate) if d else None,
        _count(d.active_energy) if d else None,
        _count(d.resting_energy) if d else None,
        _count(d.distance) if d else None,
        _count(d.step_count) if d else None,
        _count(d.heart_rate_recovery) if d else None,
        (d.route_gpx is not None) if d else None,
    ]


def stats_rows(rows: Sequence[StatsRow]) -> List[List[Any]]:
    out: List[List[Any]] = []
    for row in rows:
        out.extend(row.as_rows())
    return out


def _pad_row(row: Sequence[Any], width: int) -> List[Any]:
    padded = ["" if v is None else v for v in row]
    missing = width - len(padded)
    if missing > 0:
        padded.extend([""] * missing)
    return padded[:width]


def _row_key(row: Sequence[Any], key_columns: int) -> str:
    return "|".join(str(v) for v in row[:key_columns])


def _read_existing(path: Path, header: Sequence[str]) -> List[List[str]]:
    if not path.exists() or path.stat().st_size == 0:
        return []
    with path.open("r", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    if not rows:
        return []
    if rows[0] != list(header):
        raise ValueError(f"{path}: header does not match, refusing to merge")
    return [_pad_row(r, len(header)) for r in rows[1:] if r]


def upsert_rows(path: Path, header: Sequence[str], rows: Sequence[Sequence[Any]], key_columns: int) -> int:
    """
    Merge rows into a CSV file: a row whose key columns already exist
    replaces it, others are appended. The file is rewritten sorted by the
    first column. Returns the number of rows written or replaced.
    """
    if not rows:
        return 0
    existing = _read_existing(path, header)
    index = {_row_key(r, key_columns): i for i, r in enumerate(existing)}

    updated = appended = 0
    for r in rows:
        row = _pad_row(r, len(header))
        key = _row_key(row, key_columns)
        if key in index:
            existing[index[key]] = row
            updated += 1
        else:
            index[key] = len(existing)
            existing.append(row)
            appended += 1

    existing.sort(key=lambda r: str(r[0]))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(list(header))
        writer.writerows(existing)

    logger.info("rows_written", path=str(path), updated=updated, appended=appended)
    return updated + appended


def write_workouts(path: Path, items: Sequence[IngestedWorkout]) -> int:
    return upsert_rows(path, WORKOUT_HEADER, [workout_row(i) for i in items], WORKOUT_KEY_COLUMNS)


def write_stats(path: Path, rows: Sequence[StatsRow]) -> int:
    return upsert_rows(path, STATS_HEADER, stats_rows(rows), STATS_KEY_COLUMNS)
