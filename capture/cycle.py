# capture/cycle.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .providers import BleedingSample

CYCLE_LOOKBACK = timedelta(days=90)

# Flow tags that count as a bleeding day ("none" is a logged non-bleeding day)
FLOW_TAGS = frozenset({"unspecified", "light", "medium", "heavy"})

# (last day offset inclusive, phase)
PHASES = [
    (5, "Menstruation"),
    (13, "Follicular"),
    (16, "Ovulation"),
]
LATE_PHASE = "Luteal"
UNKNOWN_PHASE = "unknown"


def _day(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def last_bleeding_day(samples: Iterable[BleedingSample], now: datetime | date) -> Optional[date]:
    today = _day(now)
    days = [
        _day(s.day) for s in samples
        if s.flow and s.flow.strip().lower() in FLOW_TAGS and _day(s.day) <= today
    ]
    return max(days) if days else None


def phase_for_offset(offset: int) -> str:
    for last_day, phase in PHASES:
        if offset <= last_day:
            return phase
    return LATE_PHASE


def estimate_cycle_phase(samples: Iterable[BleedingSample], now: datetime | date) -> str:
    """Coarse phase from days elapsed since the most recent bleeding day."""
    last = last_bleeding_day(samples, now)
    if last is None:
        return UNKNOWN_PHASE
    return phase_for_offset((_day(now) - last).days)


__all__ = [
    "CYCLE_LOOKBACK",
    "FLOW_TAGS",
    "UNKNOWN_PHASE",
    "last_bleeding_day",
    "phase_for_offset",
    "estimate_cycle_phase",
]
