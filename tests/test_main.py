import json

from analysis.main import main
from database.db import list_logs


def cli(db_path, *args):
    return main(["--db", str(db_path), *args])


def test_log_list_and_summary(db_path, capsys):
    assert cli(db_path, "log", "--intensity", "0.8", "--symptom", "nausea", "--tags", "left temple, neck") == 0
    records = list_logs(db_path)
    assert len(records) == 1
    r = records[0]
    assert r.intensity == 0.8
    assert r.step_count == 1234
    assert r.temperature == 21.0
    assert r.pressure == 1013.2
    assert r.sleep_duration is not None
    assert r.symptoms.nausea
    assert r.symptoms.pain_location_tags == ("left temple", "neck")

    capsys.readouterr()
    assert cli(db_path, "list") == 0
    assert "8/10" in capsys.readouterr().out

    assert cli(db_path, "summary", "--json") == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["count"] == 1
    assert summary["mean_intensity"] == 0.8
    assert summary["symptom_frequencies"]["nausea"] == 1


def test_edit_and_delete(db_path, record_factory, capsys):
    from datetime import datetime
    from database.db import append_log

    ts = datetime(2024, 3, 15, 14, 30)
    append_log(record_factory(ts, intensity=0.4, step_count=50), db_path)

    assert cli(db_path, "edit", ts.isoformat(), "--intensity", "0.9", "--symptom", "fatigue") == 0
    r = list_logs(db_path)[0]
    assert r.intensity == 0.9
    assert r.symptoms.fatigue
    assert r.step_count == 50

    assert cli(db_path, "delete", ts.isoformat()) == 0
    assert list_logs(db_path) == []
    assert cli(db_path, "delete", ts.isoformat()) == 1
    assert "No migraine log" in capsys.readouterr().err


def test_export_and_import(db_path, tmp_path, capsys):
    cli(db_path, "log")
    out = tmp_path / "export"
    assert cli(db_path, "export", str(out), "--pdf") == 0
    assert (out / "history.csv").exists()
    assert (out / "records.json").exists()
    assert (out / "summary.pdf").exists()

    other_db = tmp_path / "other.sqlite3"
    assert main(["--db", str(other_db), "import", str(out / "records.json")]) == 0
    assert len(list_logs(other_db)) == 1
    assert "Imported 1 episode(s)" in capsys.readouterr().out


def test_bad_import_file_returns_error(db_path, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert cli(db_path, "import", str(bad)) == 1
    assert "Error" in capsys.readouterr().err


def test_summary_after_importing_naive_timestamp(db_path, tmp_path, capsys):
    cli(db_path, "log")
    path = tmp_path / "naive.json"
    path.write_text(json.dumps([{"timestamp": "2024-03-16T09:00:00", "intensity": 0.4}]), encoding="utf-8")
    assert cli(db_path, "import", str(path)) == 0

    capsys.readouterr()
    assert cli(db_path, "list") == 0
    assert cli(db_path, "summary", "--json") == 0
    out = capsys.readouterr().out
    assert json.loads(out[out.index("{"):])["count"] == 2
