import io
import zipfile

import pytest


def build_zip(files, compression=zipfile.ZIP_DEFLATED) -> bytes:
    """files: list of (name, text) or (name, text, compression)."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for item in files:
            name, text = item[0], item[1]
            method = item[2] if len(item) > 2 else compression
            zf.writestr(zipfile.ZipInfo(name, date_time=(2024, 9, 2, 13, 52, 8)), text, compress_type=method)
    return buf.getvalue()


SUMMARY_CSV = (
    "Workout Type,Start,End,Duration,Active Energy (kcal),Distance (mi),Avg. Heart Rate (bpm)\n"
    "Running,2024-09-02 13:52:08 -0700,2024-09-02 14:37:38 -0700,0:45:30,412.5,4.2,151\n"
    "Walking,2024-09-03 08:00:00 -0700,2024-09-03 08:30:00 -0700,,120,--,98\n"
    ",2024-09-04 08:00:00 -0700,,0:10:00,1,1,1\n"
)

HR_CSV = (
    "Date/Time,Min (count/min),Max (count/min),Avg (count/min)\n"
    "2024-09-02 13:52:08,60,80,70\n"
    "2024-09-02 13:53:08,72,95,88\n"
)

ENERGY_CSV = (
    "Date/Time,Value (kcal)\n"
    "2024-09-02 13:52:08,1.25\n"
    "2024-09-02 13:53:08,4.5\n"
)

GPX = '<?xml version="1.0"?><gpx><trk><name>Running</name></trk></gpx>'


@pytest.fixture
def export_zip() -> bytes:
    return build_zip(
        [
            ("Workouts-20240901_000000-20240905_000000.csv", SUMMARY_CSV),
            ("Running-Heart Rate-20240902_135208.csv", HR_CSV),
            ("Running-Active Energy-20240902_135210.csv", ENERGY_CSV),
            ("Running-Route-20240902_135208.gpx", GPX),
            ("Running-Heart Rate-20240902_140000.csv", HR_CSV),
            ("Walking-Step Count-20240903_080000.csv", "Date/Time,Value (count)\n2024-09-03 08:00:00,1200\n"),
            ("Running-Blood Oxygen-20240902_135208.csv", "Date/Time,Value (%)\n2024-09-02 13:52:08,98\n"),
        ]
    )


@pytest.fixture(autouse=True)
def _settings_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TZ", "Europe/Sarajevo")
    monkeypatch.setenv("MATCH_TOLERANCE_MS", "5000")
    monkeypatch.setenv("SUMMARY_PATTERN", "Workouts-*.csv")
    monkeypatch.setenv("WORKOUTS_OUTPUT", str(tmp_path / "out" / "workouts.csv"))
    monkeypatch.setenv("STATS_OUTPUT", str(tmp_path / "out" / "stats.csv"))
    monkeypatch.setenv("DELETE_SOURCE_AFTER_IMPORT", "false")
