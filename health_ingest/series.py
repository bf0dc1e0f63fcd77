from __future__ import annotations

from typing import List

from .csv_tokens import split_lines, tokenize
from .models import TimeSeriesPoint
from .utils import parse_num

SCHEMA_MIN_MAX_AVG = "min_max_avg"
SCHEMA_VALUE = "value"


def detect_schema(header: str) -> str:
    """Decided once per file from the header; min/max/avg unless only "Value" is present."""
    lowered = header.lower()
    if "min" in lowered:
        return SCHEMA_MIN_MAX_AVG
    if "value" in lowered:
        return SCHEMA_VALUE
    return SCHEMA_MIN_MAX_AVG


def _field(fields: List[str], idx: int):
    return parse_num(fields[idx]) if idx < len(fields) else None


def parse_series(csv_text: str) -> List[TimeSeriesPoint]:
    lines = split_lines(csv_text)
    if len(lines) < 2:
        return []

    schema = detect_schema(lines[0])
    points: List[TimeSeriesPoint] = []
    for line in lines[1:]:
        fields = tokenize(line)
        if len(fields) < 2:
            continue
        if schema == SCHEMA_VALUE:
            points.append(TimeSeriesPoint(timestamp=fields[0], value=_field(fields, 1)))
        else:
            points.append(
                TimeSeriesPoint(
                    timestamp=fields[0],
                    min=_field(fields, 1),
                    max=_field(fields, 2),
                    avg=_field(fields, 3),
                )
            )
    return points
