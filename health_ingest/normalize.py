from __future__ import annotations

import datetime as dt
import re
from typing import Dict, Mapping, Optional, Tuple

import structlog

from .models import Quantity, WorkoutRecord
from .utils import parse_duration, parse_export_datetime, parse_num_with_unit

logger = structlog.get_logger()

TYPE_FIELD = "Workout Type"
START_FIELD = "Start"
END_FIELD = "End"
DURATION_FIELD = "Duration"

# Summary column name (lowercase, no dots, unit stripped) -> quantity slot
QUANTITY_COLUMNS: Dict[str, str] = {
    "active energy": "active_energy",
    "active energy burned": "active_energy",
    "active calories": "active_energy",
    "calories": "active_energy",
    "resting energy": "resting_energy",
    "resting calories": "resting_energy",
    "distance": "distance",
    "total distance": "distance",
    "walking + running distance": "distance",
    "avg heart rate": "avg_heart_rate",
    "average heart rate": "avg_heart_rate",
    "max heart rate": "max_heart_rate",
    "maximum heart rate": "max_heart_rate",
    "min heart rate": "min_heart_rate",
    "minimum heart rate": "min_heart_rate",
    "avg speed": "avg_speed",
    "average speed": "avg_speed",
    "speed": "avg_speed",
    "elevation ascended": "elevation_ascended",
    "elevation gain": "elevation_ascended",
    "temperature": "temperature",
    "humidity": "humidity",
    "step count": "step_count",
    "steps": "step_count",
    "flights climbed": "flights_climbed",
    "intensity": "intensity",
}

_UNIT_SUFFIX = re.compile(r"^(.*?)\s*\(([^()]*)\)\s*$")


def split_column(header: str) -> Tuple[str, Optional[str]]:
    """'Active Energy (kcal)' -> ('active energy', 'kcal')."""
    m = _UNIT_SUFFIX.match(header.strip())
    base, unit = (m.group(1), m.group(2).strip() or None) if m else (header, None)
    key = " ".join(base.replace(".", "").lower().split())
    return key, unit


def resolve_quantity_columns(headers) -> Dict[str, Tuple[str, Optional[str]]]:
    """Map each recognised header to (slot, unit). The first header claiming a slot keeps it."""
    resolved: Dict[str, Tuple[str, Optional[str]]] = {}
    claimed = set()
    for header in headers:
        key, unit = split_column(header)
        slot = QUANTITY_COLUMNS.get(key)
        if slot is None or slot in claimed:
            continue
        claimed.add(slot)
        resolved[header] = (slot, unit)
    return resolved


def _resolve_duration(row: Mapping[str, str], start: dt.datetime, end: Optional[dt.datetime]) -> int:
    explicit = parse_duration(row.get(DURATION_FIELD))
    if explicit is not None:
        return max(0, explicit)
    if end is not None:
        return max(0, int(round((end - start).total_seconds())))
    return 0


def normalize_workout(row: Mapping[str, str], tz_name: Optional[str] = None) -> Optional[WorkoutRecord]:
    """
    One summary CSV row -> WorkoutRecord, or None when the row has no
    workout type or no parseable start. Quantities that do not parse are
    left out; they never reject the row.
    """
    workout_type = (row.get(TYPE_FIELD) or "").strip()
    start_text = (row.get(START_FIELD) or "").strip()
    if not workout_type or not start_text:
        logger.debug("workout_row_missing_fields", type=workout_type or None, start=start_text or None)
        return None

    start = parse_export_datetime(start_text, tz_name)
    if start is None:
        logger.debug("workout_row_bad_start", type=workout_type, start=start_text)
        return None
    end = parse_export_datetime(row.get(END_FIELD), tz_name)

    quantities: Dict[str, Quantity] = {}
    for header, (slot, unit) in resolve_quantity_columns(row.keys()).items():
        value, inline_unit = parse_num_with_unit(row.get(header))
        if value is None:
            continue
        quantities[slot] = Quantity(value=value, unit=unit or inline_unit)

    return WorkoutRecord(
        type=workout_type,
        start=start,
        end=end,
        duration_seconds=_resolve_duration(row, start, end),
        raw=dict(row),
        **quantities,
    )
