# sources/auto_export.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from ..models import ImportReport, IngestedWorkout, Quantity, StatsRow, WorkoutRecord
from ..utils import parse_export_datetime, parse_num, round_2dp, to_camel_case

logger = structlog.get_logger()

SOURCE = "auto_export"

# Health AutoExport metric name -> stats key
METRIC_KEYS: Dict[str, str] = {
    "step_count": "steps",
    "active_energy": "activeCalories",
    "apple_exercise_time": "exerciseMinutes",
    "walking_running_distance": "distance",
    "flights_climbed": "flights",
    "vo2_max": "vo2Max",
    "blood_oxygen_saturation": "bloodOxygen",
    "weight_body_mass": "weight",
    "body_mass_index": "bmi",
    "body_fat_percentage": "bfp",
    "lean_body_mass": "lbm",
    "apple_sleeping_wrist_temperature": "wristTemp",
    "heart_rate_variability": "hrv",
    "resting_heart_rate": "restingHr",
    "respiratory_rate": "respiratoryRate",
    "heart_rate": "hr",
}

# workout JSON key -> WorkoutRecord quantity slot
WORKOUT_QUANTITY_KEYS: Dict[str, str] = {
    "activeEnergyBurned": "active_energy",
    "activeEnergy": "active_energy",
    "restingEnergy": "resting_energy",
    "distance": "distance",
    "avgHeartRate": "avg_heart_rate",
    "maxHeartRate": "max_heart_rate",
    "minHeartRate": "min_heart_rate",
    "speed": "avg_speed",
    "elevationUp": "elevation_ascended",
    "temperature": "temperature",
    "humidity": "humidity",
    "stepCount": "step_count",
    "flightsClimbed": "flights_climbed",
    "intensity": "intensity",
}

SLEEP_TEXT_FIELDS = {
    "sleepStart": "sleepStartTime",
    "sleepEnd": "sleepEndTime",
    "inBedStart": "inBedStart",
    "inBedEnd": "inBedEnd",
}
SLEEP_NUMBER_FIELDS = {
    "totalSleep": "timeAsleep",
    "deep": "deepSleep",
    "core": "sleepCore",
    "rem": "remSleep",
    "awake": "sleepAwake",
}


@dataclass
class AutoExportParsed:
    workouts: List[Dict[str, Any]] = field(default_factory=list)
    metrics: List[Dict[str, Any]] = field(default_factory=list)
    sleep_analysis: List[Dict[str, Any]] = field(default_factory=list)


def parse_auto_export_json(text: str) -> AutoExportParsed:
    """Raises ValueError on invalid JSON; unexpected shapes just come back empty."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    if not isinstance(raw, dict):
        return AutoExportParsed()
    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}

    def _list(value: Any) -> List[Dict[str, Any]]:
        return [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []

    return AutoExportParsed(
        workouts=_list(data.get("workouts")),
        metrics=_list(data.get("metrics")),
        sleep_analysis=_list(raw.get("sleep_analysis")),
    )


def is_auto_export(parsed: AutoExportParsed) -> bool:
    return bool(parsed.workouts or parsed.metrics or parsed.sleep_analysis)


# --------------------------- Workouts ---------------------------

def _quantity(value: Any) -> Optional[Quantity]:
    if isinstance(value, dict):
        number = parse_num(value.get("qty"))
        units = value.get("units")
        return Quantity(number, str(units) if units else None) if number is not None else None
    number = parse_num(value)
    return Quantity(number) if number is not None else None


def workout_from_json(obj: Dict[str, Any], tz_name: Optional[str] = None) -> Optional[WorkoutRecord]:
    name = str(obj.get("name") or "").strip()
    start = parse_export_datetime(obj.get("start"), tz_name)
    if not name or start is None:
        return None
    end = parse_export_datetime(obj.get("end"), tz_name)

    duration = parse_num(obj.get("duration"))
    if duration is not None:
        duration_seconds = max(0, int(round(duration)))
    elif end is not None:
        duration_seconds = max(0, int(round((end - start).total_seconds())))
    else:
        duration_seconds = 0

    quantities: Dict[str, Quantity] = {}
    for key, slot in WORKOUT_QUANTITY_KEYS.items():
        if slot in quantities or key not in obj:
            continue
        q = _quantity(obj[key])
        if q is not None:
            quantities[slot] = q

    return WorkoutRecord(
        type=name,
        start=start,
        end=end,
        duration_seconds=duration_seconds,
        raw=dict(obj),
        **quantities,
    )


# --------------------------- Stats ---------------------------

def daily_metric_stats(metrics: List[Dict[str, Any]]) -> List[StatsRow]:
    by_date: Dict[str, Dict[str, Any]] = {}
    for metric in metrics:
        name = metric.get("name")
        if not name:
            continue
        key = METRIC_KEYS.get(str(name)) or to_camel_case(str(name))
        points = metric.get("data")
        if not isinstance(points, list):
            points = [metric] if metric.get("date") is not None else []
        for point in points:
            if not isinstance(point, dict):
                continue
            date_str = str(point.get("date") or "").strip()[:10]
            if len(date_str) < 10:
                continue
            value = parse_num(point.get("qty"))
            if value is None:
                continue
            by_date.setdefault(date_str, {})[key] = round_2dp(value)
    return [StatsRow(date=d, source=SOURCE, values=v) for d, v in by_date.items() if v]


def sleep_stats(sleep_analysis: List[Dict[str, Any]]) -> List[StatsRow]:
    rows: List[StatsRow] = []
    for entry in sleep_analysis:
        end_str = entry.get("sleepEnd") or entry.get("inBedEnd")
        date_str = str(end_str or "").strip()[:10]
        if len(date_str) < 10:
            continue
        values: Dict[str, Any] = {}
        for src, dst in SLEEP_TEXT_FIELDS.items():
            if entry.get(src) is not None:
                values[dst] = str(entry[src])
        for src, dst in SLEEP_NUMBER_FIELDS.items():
            if isinstance(entry.get(src), (int, float)) and not isinstance(entry.get(src), bool):
                values[dst] = entry[src]
        if entry.get("source") is not None:
            values["source"] = str(entry["source"])
        rows.append(StatsRow(date=date_str, source=SOURCE, values=values))
    return rows


def load_file(path: Path) -> ImportReport:
    report = ImportReport()
    parsed = parse_auto_export_json(path.read_text(encoding="utf-8"))
    if not is_auto_export(parsed):
        # nije AutoExport format, preskoči bez greške
        logger.debug("auto_export_not_recognised", file=str(path))
        return report

    for obj in parsed.workouts:
        record = workout_from_json(obj)
        if record is None:
            logger.warning("auto_export_workout_invalid", file=str(path), name=obj.get("name"))
            report.errors += 1
            continue
        report.workouts.append(IngestedWorkout(record=record))
        report.success += 1

    for rows in (daily_metric_stats(parsed.metrics), sleep_stats(parsed.sleep_analysis)):
        report.stats.extend(rows)
        report.success += len(rows)
    return report
