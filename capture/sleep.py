# capture/sleep.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

# Look back far enough to catch last night's main sleep when logging late in the day
SLEEP_LOOKBACK = timedelta(hours=36)
# Brief awakenings shorter than this don't split a session
SLEEP_GAP_TOLERANCE = timedelta(minutes=30)

Interval = Tuple[datetime, datetime]


@dataclass(frozen=True)
class SleepSession:
    start: datetime
    end: datetime
    duration: float  # seconds actually asleep

    @property
    def span(self) -> float:
        """Seconds between session start and end, awakenings included."""
        return (self.end - self.start).total_seconds()

    @property
    def hours(self) -> float:
        return self.duration / 3600.0


def _clean(intervals: Iterable[Interval]) -> List[Interval]:
    segs = [(s, e) for s, e in intervals if s is not None and e is not None and e > s]
    return sorted(segs, key=lambda seg: seg[0])


def merge_sessions(
    intervals: Iterable[Interval],
    gap: timedelta = SLEEP_GAP_TOLERANCE,
) -> List[SleepSession]:
    """
    Cluster asleep intervals into sessions. An interval opens a new session
    only when it starts more than `gap` after everything seen so far ended.
    Asleep time is the covered time of the intervals, so gaps are excluded and
    overlapping samples are not counted twice.
    """
    sessions: List[SleepSession] = []
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    asleep = timedelta(0)

    for seg_start, seg_end in _clean(intervals):
        if start is not None and seg_start <= end + gap:
            covered_from = max(seg_start, end)
            if seg_end > covered_from:
                asleep += seg_end - covered_from
            end = max(end, seg_end)
            continue

        if start is not None:
            sessions.append(SleepSession(start, end, asleep.total_seconds()))
        start, end, asleep = seg_start, seg_end, seg_end - seg_start

    if start is not None:
        sessions.append(SleepSession(start, end, asleep.total_seconds()))
    return sessions


def select_primary_session(sessions: Sequence[SleepSession]) -> Optional[SleepSession]:
    """Longest asleep total wins; on a tie the later-ending session wins."""
    if not sessions:
        return None
    return max(sessions, key=lambda s: (s.duration, s.end))


def reconstruct_sleep(
    intervals: Iterable[Interval],
    gap: timedelta = SLEEP_GAP_TOLERANCE,
) -> Optional[SleepSession]:
    """Best-effort main sleep period from fragmented asleep samples."""
    return select_primary_session(merge_sessions(intervals, gap))


__all__ = [
    "SleepSession",
    "SLEEP_LOOKBACK",
    "SLEEP_GAP_TOLERANCE",
    "merge_sessions",
    "select_primary_session",
    "reconstruct_sleep",
]
