from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Quantity slots on a WorkoutRecord, in export order
QUANTITY_FIELDS: Tuple[str, ...] = (
    "active_energy",
    "resting_energy",
    "distance",
    "avg_heart_rate",
    "max_heart_rate",
    "min_heart_rate",
    "avg_speed",
    "elevation_ascended",
    "temperature",
    "humidity",
    "step_count",
    "flights_climbed",
    "intensity",
)

# Time-series slots on a DetailBundle
METRIC_SLOTS: Tuple[str, ...] = (
    "heart_rate",
    "active_energy",
    "resting_energy",
    "distance",
    "step_count",
    "heart_rate_recovery",
)


@dataclass(frozen=True)
class ZipEntry:
    """One file inside a ZIP archive, as resolved from the central directory."""

    name: str
    compression_method: int
    compressed_size: int
    data_start: int

    @property
    def data_end(self) -> int:
        return self.data_start + self.compressed_size

    @property
    def base_name(self) -> str:
        return self.name.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Quantity:
    value: float
    unit: Optional[str] = None


@dataclass(frozen=True)
class WorkoutRecord:
    type: str
    start: dt.datetime
    duration_seconds: int = 0
    end: Optional[dt.datetime] = None

    active_energy: Optional[Quantity] = None
    resting_energy: Optional[Quantity] = None
    distance: Optional[Quantity] = None
    avg_heart_rate: Optional[Quantity] = None
    max_heart_rate: Optional[Quantity] = None
    min_heart_rate: Optional[Quantity] = None
    avg_speed: Optional[Quantity] = None
    elevation_ascended: Optional[Quantity] = None
    temperature: Optional[Quantity] = None
    humidity: Optional[Quantity] = None
    step_count: Optional[Quantity] = None
    flights_climbed: Optional[Quantity] = None
    intensity: Optional[Quantity] = None

    # Source row / object as exported; read by the mapping layer only
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def quantity(self, name: str) -> Optional[Quantity]:
        if name not in QUANTITY_FIELDS:
            return None
        return getattr(self, name)

    def quantities(self) -> Dict[str, Quantity]:
        out: Dict[str, Quantity] = {}
        for name in QUANTITY_FIELDS:
            q = getattr(self, name)
            if q is not None:
                out[name] = q
        return out


@dataclass(frozen=True)
class TimeSeriesPoint:
    """
    One sample of a detail series. The timestamp is kept exactly as exported.
    Either ``value`` or the min/max/avg triple is used, depending on the
    series header; a field that did not parse stays None.
    """

    timestamp: str
    value: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None


Series = Tuple[TimeSeriesPoint, ...]


@dataclass(frozen=True)
class DetailBundle:
    heart_rate: Optional[Series] = None
    active_energy: Optional[Series] = None
    resting_energy: Optional[Series] = None
    distance: Optional[Series] = None
    step_count: Optional[Series] = None
    heart_rate_recovery: Optional[Series] = None
    route_gpx: Optional[str] = None

    def slots(self) -> Dict[str, Series]:
        return {name: getattr(self, name) for name in METRIC_SLOTS if getattr(self, name) is not None}

    @property
    def is_empty(self) -> bool:
        return not self.slots() and self.route_gpx is None


@dataclass(frozen=True)
class IngestedWorkout:
    record: WorkoutRecord
    details: Optional[DetailBundle] = None


@dataclass
class StatsRow:
    """Daily health values (one date, one source) keyed by camelCase name."""

    date: str
    source: str
    values: Dict[str, Any] = field(default_factory=dict)

    def as_rows(self) -> List[List[Any]]:
        return [[self.date, self.source, key, value] for key, value in self.values.items()]


@dataclass
class ImportReport:
    success: int = 0
    errors: int = 0
    workouts: List[IngestedWorkout] = field(default_factory=list)
    stats: List[StatsRow] = field(default_factory=list)

    def merge(self, other: "ImportReport") -> None:
        self.success += other.success
        self.errors += other.errors
        self.workouts.extend(other.workouts)
        self.stats.extend(other.stats)

    def summary(self) -> str:
        tail = f" ({self.errors} error(s))" if self.errors > 0 else ""
        return f"Imported {self.success} item(s){tail}"

