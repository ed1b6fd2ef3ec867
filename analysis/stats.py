# analysis/stats.py
from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, time, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import math

import numpy as np
import pandas as pd

from .models import MigraineRecord, SYMPTOM_FLAGS

SECONDS_PER_DAY = 24 * 3600

# Weekday numbering: 1 = Sunday ... 7 = Saturday
WEEKDAY_NAMES = {
    1: "Sunday", 2: "Monday", 3: "Tuesday", 4: "Wednesday",
    5: "Thursday", 6: "Friday", 7: "Saturday",
}

TIME_METHODS = ("circular", "linear")


# ==============================
# Helpers
# ==============================
def _is_present(v: Any) -> bool:
    if v is None:
        return False
    if isinstance(v, float) and math.isnan(v):
        return False
    return True


def _numeric(values: Iterable[Any]) -> pd.Series:
    """Finite numbers only; None, NaN, inf and junk are dropped."""
    s = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").astype(float)
    return s[np.isfinite(s)]


def _local(ts: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is not None and ts.tzinfo is not None:
        return ts.astimezone(tz)
    return ts


def weekday_number(ts: datetime) -> int:
    return ts.isoweekday() % 7 + 1


def seconds_since_midnight(ts: datetime | time) -> int:
    return ts.hour * 3600 + ts.minute * 60 + ts.second


def _clock(seconds: float) -> time:
    total = int(round(seconds)) % SECONDS_PER_DAY
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return time(h, m, s)


# ==============================
# Primitive aggregates
# ==============================
def mean(values: Iterable[Any]) -> Optional[float]:
    s = _numeric(values)
    return float(s.mean()) if not s.empty else None


def median(values: Iterable[Any]) -> Optional[float]:
    """Middle value; average of the two middle values for even sizes."""
    s = _numeric(values)
    return float(s.median()) if not s.empty else None


def value_range(values: Iterable[Any]) -> Optional[Tuple[float, float]]:
    s = _numeric(values)
    if s.empty:
        return None
    return float(s.min()), float(s.max())


def categorical_mode(values: Iterable[Any]) -> Optional[Any]:
    """
    Most frequent present value. Ties go to the value whose string form sorts
    first, so the answer doesn't depend on record order.
    """
    present = [v for v in values if _is_present(v)]
    if not present:
        return None
    counts = pd.Series(present, dtype=object).value_counts()
    top = counts.max()
    tied = [v for v, c in counts.items() if c == top]
    return min(tied, key=str)


def _mode_prefer_larger(keys: Iterable[int]) -> Optional[int]:
    keys = list(keys)
    if not keys:
        return None
    counts = pd.Series(keys).value_counts()
    top = counts.max()
    return int(max(k for k, c in counts.items() if c == top))


def most_common_hour(timestamps: Iterable[datetime], tz: Optional[tzinfo] = None) -> Optional[int]:
    """0..23; ties go to the later hour."""
    return _mode_prefer_larger(_local(t, tz).hour for t in timestamps if t is not None)


def most_common_weekday(timestamps: Iterable[datetime], tz: Optional[tzinfo] = None) -> Optional[int]:
    """1 (Sunday) .. 7 (Saturday); ties go to the later day number."""
    return _mode_prefer_larger(weekday_number(_local(t, tz)) for t in timestamps if t is not None)


def mean_time_of_day(
    times: Iterable[datetime | time],
    tz: Optional[tzinfo] = None,
    method: str = "circular",
) -> Optional[time]:
    """
    Average clock time. "circular" averages on the 24 h dial, so 23:50 and
    00:10 give 00:00. "linear" averages seconds since midnight (23:50 and
    00:10 give 12:00) and is kept for comparison with older summaries.
    Returns None with no input, or when circular times cancel out exactly.
    """
    if method not in TIME_METHODS:
        raise ValueError(f"Unknown time averaging method '{method}'. Use one of: {', '.join(TIME_METHODS)}")

    secs = np.array([
        seconds_since_midnight(_local(t, tz) if isinstance(t, datetime) else t)
        for t in times if t is not None
    ], dtype=float)
    if secs.size == 0:
        return None

    if method == "linear":
        return _clock(secs.mean())

    angles = secs / SECONDS_PER_DAY * 2 * np.pi
    c, s = np.cos(angles).mean(), np.sin(angles).mean()
    if math.hypot(c, s) < 1e-9:
        return None
    angle = math.atan2(s, c) % (2 * math.pi)
    return _clock(angle / (2 * math.pi) * SECONDS_PER_DAY)


# ==============================
# Record-level aggregates
# ==============================
def symptom_frequencies(records: Sequence[MigraineRecord]) -> Dict[str, int]:
    if not records:
        return {}
    return {flag: sum(1 for r in records if getattr(r.symptoms, flag)) for flag in SYMPTOM_FLAGS}


def pain_location_tag_counts(records: Sequence[MigraineRecord]) -> Dict[str, int]:
    counts = Counter(tag for r in records for tag in r.symptoms.pain_location_tags if tag)
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


@dataclass
class HistorySummary:
    """Plain view-model over the whole journal; None means no data."""
    count: int = 0
    first_logged: Optional[datetime] = None
    last_logged: Optional[datetime] = None
    mean_intensity: Optional[float] = None
    median_intensity: Optional[float] = None

    most_common_hour: Optional[int] = None
    most_common_weekday: Optional[int] = None

    most_common_weather: Optional[str] = None
    most_common_movement: Optional[str] = None
    most_common_cycle_phase: Optional[str] = None
    most_common_pain_description: Optional[str] = None
    most_common_pain_location: Optional[str] = None
    most_common_onset_pattern: Optional[str] = None
    most_common_mood: Optional[str] = None

    mean_bedtime: Optional[time] = None
    mean_wake_time: Optional[time] = None
    median_sleep_hours: Optional[float] = None
    sleep_hours_range: Optional[Tuple[float, float]] = None

    median_steps: Optional[float] = None
    mean_steps: Optional[float] = None

    temperature_range: Optional[Tuple[float, float]] = None
    mean_temperature: Optional[float] = None
    pressure_range: Optional[Tuple[float, float]] = None
    mean_pressure: Optional[float] = None
    humidity_range: Optional[Tuple[float, float]] = None

    mean_average_heart_rate: Optional[float] = None
    mean_max_heart_rate: Optional[float] = None
    mean_resting_heart_rate: Optional[float] = None
    mean_hrv: Optional[float] = None

    symptom_frequencies: Dict[str, int] = field(default_factory=dict)
    pain_location_tags: Dict[str, int] = field(default_factory=dict)

    @property
    def mean_score(self) -> Optional[float]:
        """Mean intensity on the 0..10 display scale."""
        return None if self.mean_intensity is None else self.mean_intensity * 10

    @property
    def most_common_weekday_name(self) -> Optional[str]:
        return WEEKDAY_NAMES.get(self.most_common_weekday) if self.most_common_weekday else None

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for k, v in out.items():
            if isinstance(v, datetime):
                out[k] = v.isoformat()
            elif isinstance(v, time):
                out[k] = v.strftime("%H:%M")
            elif isinstance(v, tuple):
                out[k] = list(v)
        out["mean_score"] = self.mean_score
        out["most_common_weekday_name"] = self.most_common_weekday_name
        return out


def summarize(
    records: Sequence[MigraineRecord],
    tz: Optional[tzinfo] = None,
    time_method: str = "circular",
) -> HistorySummary:
    """
    Compute every statistic over a snapshot. Each aggregate skips only the
    records missing its own field.
    """
    records = list(records)
    if not records:
        return HistorySummary()

    def col(name: str) -> List[Any]:
        return [getattr(r, name) for r in records]

    def sym(name: str) -> List[Any]:
        return [getattr(r.symptoms, name) for r in records]

    stamps = col("timestamp")
    sleepers = [r for r in records if r.has_sleep]

    return HistorySummary(
        count=len(records),
        first_logged=min(stamps),
        last_logged=max(stamps),
        mean_intensity=mean(col("intensity")),
        median_intensity=median(col("intensity")),
        most_common_hour=most_common_hour(stamps, tz),
        most_common_weekday=most_common_weekday(stamps, tz),
        most_common_weather=categorical_mode(col("weather_condition")),
        most_common_movement=categorical_mode(col("movement_state")),
        most_common_cycle_phase=categorical_mode(col("cycle_phase")),
        most_common_pain_description=categorical_mode(sym("pain_description")),
        most_common_pain_location=categorical_mode(sym("pain_location")),
        most_common_onset_pattern=categorical_mode(sym("onset_pattern")),
        most_common_mood=categorical_mode(sym("mood")),
        mean_bedtime=mean_time_of_day([r.sleep_start for r in sleepers], tz, time_method),
        mean_wake_time=mean_time_of_day([r.sleep_end for r in sleepers], tz, time_method),
        median_sleep_hours=median(r.sleep_duration / 3600.0 for r in sleepers),
        sleep_hours_range=value_range(r.sleep_duration / 3600.0 for r in sleepers),
        median_steps=median(col("step_count")),
        mean_steps=mean(col("step_count")),
        temperature_range=value_range(col("temperature")),
        mean_temperature=mean(col("temperature")),
        pressure_range=value_range(col("pressure")),
        mean_pressure=mean(col("pressure")),
        humidity_range=value_range(col("humidity")),
        mean_average_heart_rate=mean(col("average_heart_rate")),
        mean_max_heart_rate=mean(col("max_heart_rate")),
        mean_resting_heart_rate=mean(col("resting_heart_rate")),
        mean_hrv=mean(col("heart_rate_variability")),
        symptom_frequencies=symptom_frequencies(records),
        pain_location_tags=pain_location_tag_counts(records),
    )


__all__ = [
    "HistorySummary",
    "WEEKDAY_NAMES",
    "TIME_METHODS",
    "mean",
    "median",
    "value_range",
    "categorical_mode",
    "most_common_hour",
    "most_common_weekday",
    "mean_time_of_day",
    "weekday_number",
    "seconds_since_midnight",
    "symptom_frequencies",
    "pain_location_tag_counts",
    "summarize",
]
