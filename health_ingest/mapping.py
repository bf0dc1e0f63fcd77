from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .models import WorkoutRecord
from .utils import apply_rounding, get_nested_value, to_camel_case


@dataclass(frozen=True)
class KeyMapping:
    source_key: str
    target_key: str
    rounding: Optional[int] = None


DEFAULT_KEY_MAPPINGS: List[KeyMapping] = [
    KeyMapping("name", "name"),
    KeyMapping("duration", "duration", rounding=0),
    KeyMapping("activeEnergyBurned.qty", "calories", rounding=0),
    KeyMapping("intensity.qty", "intensity", rounding=1),
    KeyMapping("start", "start"),
    KeyMapping("end", "end"),
]

# Extra names the canonical view answers to (AutoExport spellings)
QUANTITY_ALIASES: Dict[str, str] = {
    "activeEnergyBurned": "active_energy",
    "avgHeartRate": "avg_heart_rate",
    "maxHeartRate": "max_heart_rate",
    "minHeartRate": "min_heart_rate",
    "elevationUp": "elevation_ascended",
    "speed": "avg_speed",
}


def canonical_view(record: WorkoutRecord) -> Dict[str, Any]:
    view: Dict[str, Any] = {
        "name": record.type,
        "type": record.type,
        "start": record.start.isoformat(),
        "end": record.end.isoformat() if record.end else None,
        "duration": record.duration_seconds,
    }
    quantities = record.quantities()
    for slot, q in quantities.items():
        view[to_camel_case(slot)] = {"qty": q.value, "units": q.unit}
    for alias, slot in QUANTITY_ALIASES.items():
        if slot in quantities:
            view[alias] = view[to_camel_case(slot)]
    return view


def _lookup(record: WorkoutRecord, view: Dict[str, Any], key: str) -> Any:
    value = get_nested_value(view, key)
    if value is not None:
        return value
    # fallback: sirova CSV kolona ili JSON putanja
    if key in record.raw:
        return record.raw[key]
    return get_nested_value(record.raw, key)


def map_workout(record: WorkoutRecord, mappings: Optional[Sequence[KeyMapping]] = None) -> Dict[str, Any]:
    """
    Flatten a record through key mappings. Quantity objects expand into
    "<target>" and "<target>Units"; rounding applies to numbers only.
    """
    view = canonical_view(record)
    if mappings is None:
        mappings = DEFAULT_KEY_MAPPINGS
    if not mappings:
        return view

    out: Dict[str, Any] = {}
    for mapping in mappings:
        if not mapping.source_key or not mapping.target_key:
            continue
        value = _lookup(record, view, mapping.source_key)
        if value is None:
            continue
        if isinstance(value, dict) and "qty" in value:
            units = value.get("units")
            value = value.get("qty")
            if units:
                out[f"{mapping.target_key}Units"] = units
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = apply_rounding(value, mapping.rounding)
        out[mapping.target_key] = value
    return out
