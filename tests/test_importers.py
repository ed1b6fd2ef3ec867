import json
import math
from datetime import datetime, timedelta, timezone

from analysis.importers import export_records_json, import_into_journal, load_records_json
from analysis.models import Symptoms
from database.db import list_logs

T = datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)


def test_export_then_load(tmp_path, record_factory):
    records = [
        record_factory(T, intensity=0.4, symptoms=Symptoms(nausea=True, pain_location_tags=("neck",))),
        record_factory(T + timedelta(days=1), temperature=-2.5),
    ]
    path = export_records_json(tmp_path / "out" / "records.json", records)

    report = load_records_json(path)
    assert report.errors == []
    assert len(report.sha256) == 64
    first, second = report.records
    assert first.symptoms.nausea
    assert first.symptoms.pain_location_tags == ("neck",)
    assert math.isnan(first.temperature)
    assert second.temperature == -2.5


def test_nested_symptoms_and_bad_entries(tmp_path):
    data = [
        {"timestamp": "2024-03-01T08:00:00", "intensity": 0.6,
         "symptoms": {"vomiting": True, "mood": "low"}},
        {"intensity": 0.2},
        {"timestamp": "2024-03-02T08:00:00", "intensity": 3},
        "not a record",
        {"timestamp": "2024-03-03T08:00:00", "step_count": 900},
    ]
    path = tmp_path / "in.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    report = load_records_json(path)
    assert [r.timestamp.day for r in report.records] == [1, 3]
    assert report.records[0].symptoms.vomiting
    assert report.records[0].symptoms.mood == "low"
    assert report.records[1].step_count == 900
    assert sorted(idx for idx, _ in report.errors) == [1, 2, 3]


def test_import_skips_duplicates(tmp_path, db_path, record_factory):
    path = export_records_json(tmp_path / "records.json", [record_factory(T)])
    first = import_into_journal(path, db_path)
    second = import_into_journal(path, db_path)
    assert (first.added, first.duplicates) == (1, 0)
    assert (second.added, second.duplicates) == (0, 1)
    assert len(list_logs(db_path)) == 1


def test_import_without_offset_joins_aware_journal(tmp_path, db_path, record_factory):
    from analysis.stats import summarize
    from database.db import append_log

    append_log(record_factory(T), db_path)
    path = tmp_path / "naive.json"
    path.write_text(json.dumps([{"timestamp": "2024-03-16T09:00:00", "intensity": 0.4}]), encoding="utf-8")

    report = import_into_journal(path, db_path)
    assert (report.added, report.errors) == (1, [])

    records = list_logs(db_path)
    assert len(records) == 2
    assert all(r.timestamp.tzinfo is not None for r in records)
    assert records[0].timestamp > records[1].timestamp
    s = summarize(records)
    assert s.count == 2
    assert s.first_logged == T


def test_string_flags_are_reported_not_imported(tmp_path):
    path = tmp_path / "flags.json"
    path.write_text(json.dumps([
        {"timestamp": "2024-03-01T08:00:00Z", "nausea": "false"},
        {"timestamp": "2024-03-02T08:00:00Z", "nausea": 0},
    ]), encoding="utf-8")

    report = load_records_json(path)
    assert [idx for idx, _ in report.errors] == [0]
    assert len(report.records) == 1
    assert report.records[0].symptoms.nausea is False
