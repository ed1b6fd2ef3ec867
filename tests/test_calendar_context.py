from datetime import datetime, timedelta

import pytest

from capture.calendar_context import format_duration, format_event, select_events, summarize_calendar
from capture.providers import CalendarEvent

T = datetime(2024, 3, 15, 12, 0)


def ev(title, start_h_ago, end_h_ago, all_day=False):
    return CalendarEvent(title, T - timedelta(hours=start_h_ago), T - timedelta(hours=end_h_ago), all_day)


@pytest.mark.parametrize("delta, text", [
    (timedelta(minutes=45), "45m"),
    (timedelta(hours=2), "2h"),
    (timedelta(hours=2, minutes=15), "2h 15m"),
    (timedelta(days=1), "1d"),
    (timedelta(days=1, hours=3), "1d 3h"),
    (timedelta(0), "0m"),
])
def test_format_duration(delta, text):
    assert format_duration(delta) == text


def test_format_event_titles():
    assert format_event(ev("Review", 2, 1)) == "Review (1h)"
    assert format_event(ev("  ", 2, 1)) == "(No Title) (1h)"
    assert format_event(ev(None, 30, 6, all_day=True)) == "(No Title) (All Day)"


def test_current_events_win_over_recent_ones():
    current_late = ev("Workshop", 1, -1)
    current_early = ev("Offsite", 3, -2)
    long_past = ev("Flight", 30, 20)
    picked = select_events([current_late, long_past, current_early], T)
    assert [e.title for e in picked] == ["Offsite", "Workshop"]


def test_recent_events_sorted_by_duration_then_end_and_capped():
    events = [
        ev("Short", 5, 4),
        ev("Long", 20, 10),
        ev("Mid old", 40, 36),
        ev("Mid new", 8, 4),
        ev("Too old", 90, 80),
        ev("Upcoming", -2, -3),
    ]
    picked = select_events(events, T)
    assert [e.title for e in picked] == ["Long", "Mid new", "Mid old"]


def test_event_ending_exactly_now_counts_as_current():
    picked = select_events([ev("Call", 1, 0)], T)
    assert [e.title for e in picked] == ["Call"]


def test_summary_joins_lines_or_returns_none():
    assert summarize_calendar([], T) is None
    text = summarize_calendar([ev("Gym", 3, 2), ev("Lunch", 2, 1)], T)
    assert text.splitlines() == ["Lunch (1h)", "Gym (1h)"]


def test_overlapping_event_hides_past_events():
    events = [ev("Past A", 10, 8), ev("Now", 1, -1), ev("Past B", 30, 25)]
    assert summarize_calendar(events, T) == "Now (2h)"
