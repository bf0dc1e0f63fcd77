import datetime as dt

from health_ingest.correlate import (
    DetailName,
    correlate,
    matches_workout,
    parse_detail_name,
    parse_stamp,
)
from health_ingest.models import WorkoutRecord

from conftest import ENERGY_CSV, GPX, HR_CSV

PDT = dt.timezone(dt.timedelta(hours=-7))


def _workout(start=dt.datetime(2024, 9, 2, 13, 52, 8, tzinfo=PDT), type_="Running"):
    return WorkoutRecord(type=type_, start=start)


def test_parse_detail_name():
    assert parse_detail_name("Running-Heart Rate-20240902_135208.csv") == DetailName(
        workout_type="Running", metric="Heart Rate", stamp="20240902_135208", extension="csv"
    )


def test_parse_detail_name_rejoins_hyphenated_type():
    name = parse_detail_name("export/Cross-Country Skiing-Step Count-20240902_135208.CSV")
    assert name.workout_type == "Cross-Country Skiing"
    assert name.metric == "Step Count"
    assert name.extension == "csv"


def test_parse_detail_name_rejects_other_files():
    assert parse_detail_name("README.txt") is None
    assert parse_detail_name("Running-20240902.csv") is None
    assert parse_detail_name("noextension") is None


def test_parse_stamp():
    assert parse_stamp("20240902_135208") == dt.datetime(2024, 9, 2, 13, 52, 8)
    assert parse_stamp("20240902-135208") == dt.datetime(2024, 9, 2, 13, 52, 8)
    assert parse_stamp("20240902_1352") is None
    assert parse_stamp("2024090x_135208") is None
    assert parse_stamp("20241302_135208") is None


def test_heart_rate_file_correlates_to_same_start():
    bundle = correlate(_workout(), [("Running-Heart Rate-20240902_135208.csv", HR_CSV)], tolerance_ms=5000)
    assert bundle.heart_rate is not None
    assert len(bundle.heart_rate) == 2
    assert bundle.heart_rate[0].avg == 70.0


def test_file_more_than_five_seconds_away_does_not_correlate():
    far = _workout(start=dt.datetime(2024, 9, 2, 13, 52, 14, tzinfo=PDT))
    bundle = correlate(far, [("Running-Heart Rate-20240902_135208.csv", HR_CSV)], tolerance_ms=5000)
    assert bundle.heart_rate is None
    assert bundle.is_empty


def test_tolerance_boundary_is_inclusive():
    near = _workout(start=dt.datetime(2024, 9, 2, 13, 52, 13, tzinfo=PDT))
    bundle = correlate(near, [("Running-Heart Rate-20240902_135208.csv", HR_CSV)], tolerance_ms=5000)
    assert bundle.heart_rate is not None


def test_type_match_is_exact_and_case_sensitive():
    bundle = correlate(_workout(type_="running"), [("Running-Heart Rate-20240902_135208.csv", HR_CSV)], 5000)
    assert bundle.is_empty


def test_gpx_stored_verbatim_and_unknown_metric_ignored():
    bundle = correlate(
        _workout(),
        [
            ("Running-Route-20240902_135208.gpx", GPX),
            ("Running-Blood Oxygen-20240902_135208.csv", "t,Value\na,1\n"),
            ("Running-Active Energy-20240902_135210.csv", ENERGY_CSV),
        ],
        tolerance_ms=5000,
    )
    assert bundle.route_gpx == GPX
    assert set(bundle.slots()) == {"active_energy"}
    assert bundle.active_energy[1].value == 4.5


def test_walking_running_distance_maps_to_distance_slot():
    bundle = correlate(
        _workout(), [("Running-Walking + Running Distance-20240902_135208.csv", "t,Value (mi)\na,0.01\n")], 5000
    )
    assert bundle.distance[0].value == 0.01


def test_same_slot_last_file_wins():
    first = "t,Min,Max,Avg\na,1,1,1\n"
    second = "t,Min,Max,Avg\nb,2,2,2\n"
    bundle = correlate(
        _workout(),
        [
            ("Running-Heart Rate-20240902_135208.csv", first),
            ("Running-Heart Rate-20240902_135209.csv", second),
        ],
        tolerance_ms=5000,
    )
    assert bundle.heart_rate[0].timestamp == "b"


def test_unparseable_stamp_only_matches_without_start():
    name = DetailName(workout_type="Running", metric="Heart Rate", stamp="latest", extension="csv")
    assert matches_workout(name, "Running", None, 5000) is True
    assert matches_workout(name, "Running", dt.datetime(2024, 9, 2, 13, 52, 8, tzinfo=PDT), 5000) is False


def test_tolerance_defaults_to_settings(monkeypatch):
    monkeypatch.setenv("MATCH_TOLERANCE_MS", "60000")
    later = _workout(start=dt.datetime(2024, 9, 2, 13, 52, 50, tzinfo=PDT))
    bundle = correlate(later, [("Running-Heart Rate-20240902_135208.csv", HR_CSV)])
    assert bundle.heart_rate is not None
