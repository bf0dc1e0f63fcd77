import datetime as dt

from health_ingest.models import Quantity
from health_ingest.normalize import normalize_workout, resolve_quantity_columns, split_column


def _row(**overrides):
    row = {
        "Workout Type": "Running",
        "Start": "2024-09-02 13:52:08 -0700",
        "End": "2024-09-02 14:40:00 -0700",
        "Duration": "0:45:30",
    }
    row.update(overrides)
    return row


def test_explicit_duration_wins():
    record = normalize_workout(_row())
    assert record is not None
    assert record.type == "Running"
    assert record.duration_seconds == 2730


def test_start_keeps_offset():
    record = normalize_workout(_row())
    assert record.start == dt.datetime(2024, 9, 2, 20, 52, 8, tzinfo=dt.timezone.utc)
    assert record.start.utcoffset() == dt.timedelta(hours=-7)


def test_duration_derived_from_end_when_missing():
    record = normalize_workout(_row(Duration=""))
    assert record.duration_seconds == 47 * 60 + 52


def test_duration_mm_ss():
    assert normalize_workout(_row(Duration="12:05")).duration_seconds == 725


def test_duration_defaults_to_zero_without_end():
    record = normalize_workout({"Workout Type": "Yoga", "Start": "2024-09-02 07:00:00 +0200"})
    assert record.duration_seconds == 0
    assert record.end is None


def test_missing_type_or_start_returns_none():
    assert normalize_workout(_row(**{"Workout Type": ""})) is None
    assert normalize_workout({"Start": "2024-09-02 13:52:08 -0700"}) is None
    assert normalize_workout(_row(Start="")) is None


def test_unparseable_start_returns_none():
    assert normalize_workout(_row(Start="yesterday")) is None
    assert normalize_workout(_row(Start="2024-13-02 13:52:08 -0700")) is None


def test_start_without_offset_uses_configured_tz():
    record = normalize_workout(_row(Start="2024-01-15 10:00:00", End=""))
    assert record.start.utcoffset() == dt.timedelta(hours=1)


def test_quantities_with_units_and_bad_values_omitted():
    row = _row(**{
        "Active Energy (kcal)": "412.5",
        "Distance (mi)": "--",
        "Avg. Heart Rate (bpm)": "151",
        "Temperature": "21 °C",
        "Humidity (%)": "abc",
        "Flights Climbed (count)": "1,204",
    })
    record = normalize_workout(row)
    assert record.active_energy == Quantity(412.5, "kcal")
    assert record.avg_heart_rate == Quantity(151.0, "bpm")
    assert record.temperature == Quantity(21.0, "°C")
    assert record.flights_climbed == Quantity(1204.0, "count")
    assert record.distance is None
    assert record.humidity is None
    assert set(record.quantities()) == {"active_energy", "avg_heart_rate", "temperature", "flights_climbed"}


def test_raw_row_is_kept():
    row = _row(**{"Source": "Apple Watch"})
    record = normalize_workout(row)
    assert record.raw["Source"] == "Apple Watch"


def test_split_column():
    assert split_column("Active Energy (kcal)") == ("active energy", "kcal")
    assert split_column("Avg. Heart Rate") == ("avg heart rate", None)


def test_first_column_claims_slot():
    resolved = resolve_quantity_columns(["Active Energy (kcal)", "Calories (kJ)", "Notes"])
    assert resolved == {"Active Energy (kcal)": ("active_energy", "kcal")}
