import json

from typer.testing import CliRunner

from health_ingest.cli import app

from conftest import SUMMARY_CSV

runner = CliRunner()


def test_ingest_zip(tmp_path, export_zip):
    path = tmp_path / "export.zip"
    path.write_bytes(export_zip)
    result = runner.invoke(app, ["ingest", str(path), "--no-write"])
    assert result.exit_code == 0, result.output
    assert "Running" in result.output
    assert "heart_rate" in result.output
    assert "calories=413" in result.output
    assert "duration=2730" in result.output
    assert "Imported 2 item(s)" in result.output


def test_ingest_rejects_unknown_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hi")
    result = runner.invoke(app, ["ingest", str(path)])
    assert result.exit_code != 0


def test_scan_writes_rows_and_counts_errors(tmp_path, export_zip):
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    (inbox / "export.zip").write_bytes(export_zip)
    (inbox / "Workouts-only.csv").write_text(SUMMARY_CSV, encoding="utf-8")
    (inbox / "broken.json").write_text("{nope", encoding="utf-8")
    (inbox / "other.json").write_text(json.dumps({"x": 1}), encoding="utf-8")
    (inbox / "readme.md").write_text("ignored", encoding="utf-8")

    result = runner.invoke(app, ["scan", "--folder", str(inbox), "--keep"])
    assert result.exit_code == 0, result.output
    assert "Scanning 4 file(s)..." in result.output
    assert "Imported 4 item(s) (1 error(s))" in result.output
    assert (tmp_path / "out" / "workouts.csv").exists()
    assert (inbox / "export.zip").exists()


def test_scan_delete_removes_processed_sources_only(tmp_path, export_zip):
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    (inbox / "export.zip").write_bytes(export_zip)
    (inbox / "other.json").write_text(json.dumps({"x": 1}), encoding="utf-8")
    result = runner.invoke(app, ["scan", "--folder", str(inbox), "--delete"])
    assert result.exit_code == 0, result.output
    assert not (inbox / "export.zip").exists()
    assert (inbox / "other.json").exists()


def test_scan_empty_folder(tmp_path):
    result = runner.invoke(app, ["scan", "--folder", str(tmp_path)])
    assert result.exit_code == 0
    assert "No import files found" in result.output


def test_diag_prints_settings():
    result = runner.invoke(app, ["diag"])
    assert result.exit_code == 0
    assert "MATCH_TOLERANCE_MS: 5000" in result.output
