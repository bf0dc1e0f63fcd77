from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import structlog

from .config import get_settings
from .models import DetailBundle, WorkoutRecord
from .series import parse_series

logger = structlog.get_logger()

# Metric token in a detail file name -> DetailBundle slot
METRIC_SLOT_BY_NAME: Dict[str, str] = {
    "Heart Rate": "heart_rate",
    "Active Energy": "active_energy",
    "Resting Energy": "resting_energy",
    "Walking + Running Distance": "distance",
    "Step Count": "step_count",
    "Heart Rate Recovery": "heart_rate_recovery",
}

DETAIL_EXTENSIONS = ("csv", "gpx")


@dataclass(frozen=True)
class DetailName:
    """Parsed "<WorkoutType>-<MetricName>-<YYYYMMDD_HHMMSS>.<csv|gpx>"."""

    workout_type: str
    metric: str
    stamp: str
    extension: str


def parse_detail_name(file_name: str) -> Optional[DetailName]:
    base = file_name.rsplit("/", 1)[-1]
    if "." not in base:
        return None
    stem, extension = base.rsplit(".", 1)
    extension = extension.lower()
    if extension not in DETAIL_EXTENSIONS:
        return None
    parts = stem.split("-")
    if len(parts) < 3:
        return None
    return DetailName(
        workout_type="-".join(parts[:-2]),
        metric=parts[-2],
        stamp=parts[-1],
        extension=extension,
    )


def parse_stamp(token: str) -> Optional[dt.datetime]:
    """YYYYMMDD_HHMMSS (any single separator char) -> naive wall-clock datetime."""
    if len(token) != 15:
        return None
    date_part, time_part = token[:8], token[9:]
    if not (date_part.isdigit() and time_part.isdigit()):
        return None
    try:
        return dt.datetime(
            int(date_part[:4]), int(date_part[4:6]), int(date_part[6:8]),
            int(time_part[:2]), int(time_part[2:4]), int(time_part[4:6]),
        )
    except ValueError:
        return None


def _wall_clock(start: dt.datetime) -> dt.datetime:
    # stamp u imenu fajla je lokalno vrijeme uređaja, isto kao offset u summary CSV-u
    return start.replace(tzinfo=None)


def matches_workout(
    name: DetailName,
    workout_type: str,
    start: Optional[dt.datetime],
    tolerance_ms: int,
) -> bool:
    if name.workout_type != workout_type:
        return False
    stamp = parse_stamp(name.stamp)
    if stamp is None:
        return start is None
    if start is None:
        return True
    delta_ms = abs((stamp - _wall_clock(start)).total_seconds()) * 1000
    return delta_ms <= tolerance_ms


def correlate(
    workout: WorkoutRecord,
    detail_entries: Iterable[Tuple[str, str]],
    tolerance_ms: Optional[int] = None,
) -> DetailBundle:
    """
    Collect the detail files that belong to one workout. Entries are
    visited in the given order; when two files claim the same slot the
    later one wins.
    """
    if tolerance_ms is None:
        tolerance_ms = get_settings().MATCH_TOLERANCE_MS

    slots: Dict[str, object] = {}
    for file_name, text in detail_entries:
        name = parse_detail_name(file_name)
        if name is None:
            continue
        if not matches_workout(name, workout.type, workout.start, tolerance_ms):
            continue

        if name.extension == "gpx":
            slot = "route_gpx"
            value: object = text
        else:
            slot = METRIC_SLOT_BY_NAME.get(name.metric)
            if slot is None:
                logger.debug("detail_unknown_metric", file=file_name, metric=name.metric)
                continue
            value = tuple(parse_series(text))

        if slot in slots:
            logger.debug("detail_slot_replaced", file=file_name, slot=slot, workout_type=workout.type)
        slots[slot] = value

    return DetailBundle(**slots)  # type: ignore[arg-type]
