import math
from datetime import datetime, timedelta, timezone

import pytest

from analysis.models import MigraineRecord, Symptoms, SYMPTOM_FLAGS, parse_timestamp, sort_for_display

T = datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc)


def test_defaults():
    r = MigraineRecord(timestamp=T)
    assert r.intensity == 0.5
    assert r.step_count == 0
    assert math.isnan(r.temperature)
    assert not r.has_temperature
    assert r.symptoms.active_flags() == []
    assert len(SYMPTOM_FLAGS) == 16


@pytest.mark.parametrize("kwargs", [
    {"intensity": 1.2},
    {"intensity": -0.1},
    {"step_count": -1},
    {"sleep_start": T, "sleep_end": T},
    {"location_latitude": 1.0},
    {"movement_state": "flying"},
    {"movement_confidence": 3},
])
def test_invalid_records_are_rejected(kwargs):
    with pytest.raises(ValueError):
        MigraineRecord(timestamp=T, **kwargs)


def test_score_truncates():
    assert MigraineRecord(timestamp=T, intensity=0.79).score == 7
    assert MigraineRecord(timestamp=T, intensity=1.0).score == 10


def test_edit_only_user_fields():
    r = MigraineRecord(timestamp=T, step_count=10)
    edited = r.edited(intensity=0.9, nausea=True, mood="low")
    assert edited.intensity == 0.9
    assert edited.symptoms.nausea
    assert edited.symptoms.mood == "low"
    assert edited.step_count == 10
    assert r.intensity == 0.5  # original untouched

    with pytest.raises(ValueError, match="step_count"):
        r.edited(step_count=99)
    with pytest.raises(ValueError):
        r.edited(intensity=2.0)


def test_flags_by_group():
    s = Symptoms(nausea=True, visual_aura=True, yawning=True)
    groups = s.flags_by_group()
    assert groups["sensory"] == ["nausea"]
    assert groups["aura"] == ["visual_aura"]
    assert groups["facial"] == []
    assert groups["prodrome"] == ["yawning"]


def test_dict_round_trip_and_nan():
    r = MigraineRecord(
        timestamp=T, intensity=0.4, pressure=1000.0,
        sleep_start=T - timedelta(hours=9), sleep_end=T - timedelta(hours=1), sleep_duration=27000.0,
        symptoms=Symptoms(pain_location_tags=["neck"], fatigue=True),
    )
    d = r.to_dict()
    assert d["temperature"] is None
    assert d["timestamp"] == T.isoformat()
    assert d["pain_location_tags"] == ["neck"]
    assert d["fatigue"] is True

    back = MigraineRecord.from_dict(d)
    assert math.isnan(back.temperature)
    assert back.sleep_start == r.sleep_start
    assert back.symptoms == r.symptoms
    assert back.edited(intensity=0.4).pressure == 1000.0


def test_from_dict_requires_timestamp():
    with pytest.raises(KeyError):
        MigraineRecord.from_dict({"intensity": 0.3})


def test_sort_for_display_newest_first():
    rs = [MigraineRecord(timestamp=T + timedelta(hours=h)) for h in (2, 0, 1)]
    assert [r.timestamp.hour for r in sort_for_display(rs)] == [10, 9, 8]


def test_parse_timestamp_always_has_an_offset():
    assert parse_timestamp("2024-03-15T08:00:00Z") == T
    assert parse_timestamp("2024-03-15T10:00:00+02:00") == T
    naive = parse_timestamp("2024-03-15T08:00:00")
    assert naive.tzinfo is not None
    assert naive.replace(tzinfo=None) == datetime(2024, 3, 15, 8, 0)


def test_from_dict_gives_naive_times_an_offset():
    r = MigraineRecord.from_dict({
        "timestamp": "2024-03-15T08:00:00",
        "sleep_start": "2024-03-14T23:00:00",
        "sleep_end": "2024-03-15T06:00:00",
        "sleep_duration": 25200.0,
    })
    assert r.timestamp.tzinfo is not None
    assert r.sleep_start.tzinfo is not None
    assert r.sleep_end.tzinfo is not None
    # comparable with records stamped in UTC
    assert sort_for_display([r, MigraineRecord(timestamp=T)])


@pytest.mark.parametrize("value, expected", [(True, True), (False, False), (1, True), (0, False)])
def test_symptom_flags_accept_booleans_and_bits(value, expected):
    r = MigraineRecord.from_dict({"timestamp": T.isoformat(), "nausea": value})
    assert r.symptoms.nausea is expected


@pytest.mark.parametrize("value", ["false", "true", "yes", 2, 0.5])
def test_symptom_flags_reject_other_values(value):
    with pytest.raises(ValueError):
        MigraineRecord.from_dict({"timestamp": T.isoformat(), "nausea": value})
