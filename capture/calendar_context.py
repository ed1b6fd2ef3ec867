# capture/calendar_context.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .providers import CalendarEvent

CALENDAR_LOOKBACK = timedelta(days=3)
CALENDAR_LOOKAHEAD = timedelta(days=1)
MAX_RECENT_EVENTS = 3
NO_TITLE = "(No Title)"


def calendar_window(t: datetime) -> tuple[datetime, datetime]:
    return t - CALENDAR_LOOKBACK, t + CALENDAR_LOOKAHEAD


def format_duration(delta: timedelta) -> str:
    """Coarsest sensible unit: 45m, 2h, 2h 15m, 1d, 1d 3h."""
    minutes = max(0, int(delta.total_seconds() // 60))
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {mins}m" if mins else f"{hours}h"
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h" if hours else f"{days}d"


def format_event(event: CalendarEvent) -> str:
    title = (event.title or "").strip() or NO_TITLE
    length = "All Day" if event.is_all_day else format_duration(event.duration)
    return f"{title} ({length})"


def select_events(events: Iterable[CalendarEvent], t: datetime) -> List[CalendarEvent]:
    """
    Events running at `t` if there are any (by start time); otherwise the
    longest events that finished in the lookback window.
    """
    events = list(events)
    current = [e for e in events if e.start <= t <= e.end]
    if current:
        return sorted(current, key=lambda e: e.start)

    window_start, _ = calendar_window(t)
    recent = [e for e in events if window_start < e.end < t]
    recent.sort(key=lambda e: (e.duration, e.end), reverse=True)
    return recent[:MAX_RECENT_EVENTS]


def summarize_calendar(events: Iterable[CalendarEvent], t: datetime) -> Optional[str]:
    lines = [format_event(e) for e in select_events(events, t)]
    return "\n".join(lines) if lines else None


__all__ = [
    "CALENDAR_LOOKBACK",
    "CALENDAR_LOOKAHEAD",
    "MAX_RECENT_EVENTS",
    "calendar_window",
    "format_duration",
    "format_event",
    "select_events",
    "summarize_calendar",
]
