from __future__ import annotations

import datetime as dt
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional, Tuple

import pytz
import structlog

from .config import get_settings

logger = structlog.get_logger()


def get_tz(name: Optional[str] = None) -> pytz.BaseTzInfo:
    zone = name or get_settings().TZ
    try:
        return pytz.timezone(zone)
    except pytz.UnknownTimeZoneError:
        logger.warning("unknown_timezone", tz=zone, fallback="UTC")
        return pytz.utc


def round_dp(value: Optional[float], places: int = 2) -> Optional[float]:
    if value is None:
        return None
    step = Decimal(1).scaleb(-places)
    q = Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP)
    return float(q)


def round_2dp(value: Optional[float]) -> Optional[float]:
    return round_dp(value, 2)


def apply_rounding(value: float, places: Optional[int]) -> float | int:
    """
    Round only when the value carries more decimals than asked for.
    0 places yields an int so exported rows read "45" rather than "45.0".
    """
    if places is None or places < 0:
        return value
    text = repr(float(value))
    if "e" in text or "E" in text:
        return value
    decimals = len(text.split(".")[1].rstrip("0")) if "." in text else 0
    if decimals <= places:
        return int(value) if places == 0 and float(value).is_integer() else value
    rounded = round_dp(value, places)
    if places == 0 and rounded is not None:
        return int(rounded)
    return rounded  # type: ignore[return-value]


def seconds_to_minutes(value_seconds: Optional[float]) -> Optional[float]:
    if value_seconds is None:
        return None
    return round_2dp(value_seconds / 60)


# --------------------------- numbers ---------------------------

_NUM_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?")
_MISSING_MARKERS = {"", "-", "--", "−", "–", "n/a", "N/A"}


def _leading_number(text: str) -> Tuple[Optional[float], str]:
    t = text.strip().strip("\"'").strip()
    if t in _MISSING_MARKERS:
        return None, ""
    grouped = _THOUSANDS_RE.match(t)
    if grouped:
        t = grouped.group(0).replace(",", "") + t[grouped.end():]
    m = _NUM_RE.match(t)
    if not m:
        return None, ""
    try:
        number = float(m.group(0))
    except ValueError:
        return None, ""
    if not math.isfinite(number):
        return None, ""
    return number, t[m.end():].strip()


def parse_num(value: Any) -> Optional[float]:
    """Leading-number parse: "3.1 mi" -> 3.1, "--" -> None, never raises."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else None
    number, _ = _leading_number(str(value))
    return number


def parse_num_with_unit(value: Any) -> Tuple[Optional[float], Optional[str]]:
    """Like parse_num, but also returns the trailing unit text ("3.1 mi" -> (3.1, "mi"))."""
    if value is None or isinstance(value, (bool, int, float)):
        return parse_num(value), None
    number, rest = _leading_number(str(value))
    if number is None:
        return None, None
    return number, (rest or None)


# --------------------------- time ---------------------------

_EXPORT_DT_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6})\d*)?)?"
    r"\s*(Z|[+-]\d{2}:?\d{2})?$"
)


def _parse_offset(token: str) -> dt.tzinfo:
    if token == "Z":
        return dt.timezone.utc
    sign = -1 if token[0] == "-" else 1
    digits = token[1:].replace(":", "")
    delta = dt.timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return dt.timezone(sign * delta)


def parse_export_datetime(value: Optional[str], tz_name: Optional[str] = None) -> Optional[dt.datetime]:
    """
    Export timestamps look like "2024-09-02 13:52:08 -0700". The first space
    becomes a "T"; the offset is kept. Timestamps without an offset are
    localized to the configured TZ. Returns None on anything unparseable.
    """
    if not value:
        return None
    text = str(value).strip().replace(" ", "T", 1)
    m = _EXPORT_DT_RE.match(text)
    if not m:
        return None
    year, month, day, hour, minute = (int(m.group(i)) for i in range(1, 6))
    second = int(m.group(6) or 0)
    micro = int((m.group(7) or "").ljust(6, "0"))
    try:
        tzinfo = _parse_offset(m.group(8)) if m.group(8) else None
        naive = dt.datetime(year, month, day, hour, minute, second, micro)
    except ValueError:
        return None
    if tzinfo is not None:
        return naive.replace(tzinfo=tzinfo)
    return get_tz(tz_name).localize(naive)


def parse_duration(value: Optional[str]) -> Optional[int]:
    """ "0:45:30" -> 2730, "45:30" -> 2730, "2730" -> 2730. None when unparseable."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    total = 0.0
    for part in text.split(":"):
        part = part.strip()
        if not re.fullmatch(r"\d+(?:\.\d+)?", part):
            return None
        total = total * 60 + float(part)
    return int(round(total))


# --------------------------- lookups ---------------------------

def get_nested_value(obj: Any, path: str) -> Any:
    value = obj
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def to_camel_case(s: str) -> str:
    parts = [p for p in s.split("_") if p]
    if not parts:
        return s
    return parts[0].lower() + "".join(p[:1].upper() + p[1:].lower() for p in parts[1:])


WORKOUT_CATEGORIES = {
    "traditional strength training": "strength",
    "core training": "core",
    "indoor run": "running",
    "outdoor run": "running",
    "running": "running",
    "run": "running",
    "walking": "walking",
    "outdoor walk": "walking",
    "walk": "walking",
    "indoor cycling": "cycling",
    "outdoor cycling": "cycling",
    "cycling": "cycling",
    "spin": "spin",
    "hiit": "hiit",
    "high intensity interval training": "hiit",
    "yoga": "yoga",
    "rowing": "rowing",
    "swimming": "swim",
    "swim": "swim",
    "elliptical": "elliptical",
    "stair climbing": "stair",
    "stairs": "stair",
    "stair": "stair",
    "dance": "dance",
    "hiking": "hiking",
    "hike": "hiking",
    "mind & body": "mindbody",
    "mind and body": "mindbody",
    "cooldown": "cooldown",
    "sauna": "sauna",
    "functional strength training": "functionalstrength",
    "functional strength": "functionalstrength",
    "other": "other",
}


def workout_category(value: Optional[str]) -> str:
    if not value:
        return "other"
    key = value.strip().lower()
    if key in WORKOUT_CATEGORIES:
        return WORKOUT_CATEGORIES[key]
    # djelimično poklapanje, npr. "Outdoor Run (Trail)"
    for pattern, category in WORKOUT_CATEGORIES.items():
        if pattern in key or key in pattern:
            return category
    return "other"
