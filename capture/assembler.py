# capture/assembler.py
# -------------------------------------------------------------
# Build one MigraineRecord from independently failing sources.
# All provider calls run concurrently; weather waits for the
# location fix. A failing source only degrades its own fields.
# -------------------------------------------------------------
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from analysis.models import (
    DEFAULT_INTENSITY,
    MOVEMENT_CONFIDENCE,
    MOVEMENT_STATES,
    MigraineRecord,
    Symptoms,
)
from database.db import PersistenceError

from .calendar_context import CALENDAR_LOOKAHEAD, CALENDAR_LOOKBACK, summarize_calendar
from .cycle import CYCLE_LOOKBACK, estimate_cycle_phase
from .providers import (
    AuthorizationDenied,
    AuthorizationStatus,
    DataSource,
    MovementReading,
    Providers,
    SourceUnavailable,
)
from .results import FieldResult, Outcome
from .sleep import SLEEP_GAP_TOLERANCE, SLEEP_LOOKBACK, reconstruct_sleep

log = logging.getLogger(__name__)


# ==============================
# Configuration
# ==============================
@dataclass
class AssemblyConfig:
    sleep_lookback: timedelta = SLEEP_LOOKBACK
    sleep_gap: timedelta = SLEEP_GAP_TOLERANCE
    cycle_lookback: timedelta = CYCLE_LOOKBACK
    calendar_lookback: timedelta = CALENDAR_LOOKBACK
    calendar_lookahead: timedelta = CALENDAR_LOOKAHEAD
    movement_window: timedelta = timedelta(minutes=5)
    heart_rate_window: timedelta = timedelta(hours=1)
    resting_window: timedelta = timedelta(hours=24)
    location_timeout: float = 5.0   # seconds
    default_intensity: float = DEFAULT_INTENSITY


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class AssemblyReport:
    """The assembled record plus how every source behaved."""
    record: MigraineRecord
    results: Dict[str, FieldResult] = field(default_factory=dict)

    @property
    def denied_sources(self) -> List[str]:
        return [name for name, r in self.results.items() if r.outcome is Outcome.DENIED]

    @property
    def errored_sources(self) -> List[str]:
        return [name for name, r in self.results.items() if r.outcome is Outcome.ERRORED]

    @property
    def authorization_denied(self) -> bool:
        return bool(self.denied_sources)


# ==============================
# Single provider call
# ==============================
async def _attempt(
    name: str,
    source: Optional[DataSource],
    call: Callable[[], Awaitable[Any]],
) -> FieldResult:
    if source is None:
        return FieldResult.absent(name)
    if source.authorization_status() is AuthorizationStatus.DENIED:
        log.info("Skipping %s: authorization denied", name)
        return FieldResult.denied(name)

    try:
        value = await call()
    except AuthorizationDenied as e:
        log.warning("Source %s denied access: %s", name, e)
        return FieldResult.denied(name, str(e))
    except asyncio.TimeoutError:
        log.warning("Source %s timed out", name)
        return FieldResult.errored(name, "timed out")
    except Exception as e:
        reason = str(e) or type(e).__name__
        log.warning("Source %s failed: %s", name, reason)
        return FieldResult.errored(name, reason)

    if value is None:
        return FieldResult.absent(name)
    return FieldResult.present(name, value)


def _normalise_movement(reading: MovementReading) -> MovementReading:
    state = reading.state if reading.state in MOVEMENT_STATES else "unknown"
    confidence = reading.confidence if reading.confidence in MOVEMENT_CONFIDENCE else 0
    return MovementReading(state, confidence)


# ==============================
# Assembly
# ==============================
async def assemble_record(
    providers: Providers,
    t: Optional[datetime] = None,
    intensity: float = DEFAULT_INTENSITY,
    symptoms: Optional[Symptoms] = None,
    config: Optional[AssemblyConfig] = None,
) -> AssemblyReport:
    """
    One best-effort pass over every configured source. Never fails because a
    source is missing, slow, broken or denied.
    """
    cfg = config or AssemblyConfig()
    t = t or local_now()
    p = providers

    async def steps():
        value = int(await p.steps.fetch_step_count(t.date()))
        if value < 0:
            raise SourceUnavailable(f"negative step count {value}")
        return value

    async def location():
        lat, lon = await asyncio.wait_for(
            p.location.request_location_fix(cfg.location_timeout),
            timeout=cfg.location_timeout,
        )
        return float(lat), float(lon)

    location_task = asyncio.ensure_future(_attempt("location", p.location, location))

    async def weather():
        fix = await location_task
        if not fix.is_present:
            raise SourceUnavailable("location unavailable")
        return await p.weather.fetch_weather_bundle(fix.value)

    async def sleep():
        intervals = await p.sleep.fetch_asleep_intervals(t - cfg.sleep_lookback, t)
        return reconstruct_sleep(intervals or [], cfg.sleep_gap)

    async def movement():
        reading = await p.movement.fetch_movement_state(t - cfg.movement_window, t)
        return _normalise_movement(reading) if reading is not None else None

    async def cycle():
        samples = await p.cycle.fetch_bleeding_samples(t - cfg.cycle_lookback, t)
        return estimate_cycle_phase(samples or [], t)

    async def calendar():
        events = await p.calendar.fetch_calendar_events(t - cfg.calendar_lookback, t + cfg.calendar_lookahead)
        return summarize_calendar(events or [], t)

    hr_start = t - cfg.heart_rate_window
    rest_start = t - cfg.resting_window

    gathered = await asyncio.gather(
        _attempt("steps", p.steps, steps),
        _attempt("weather", p.weather, weather),
        _attempt("pressure", p.pressure, lambda: p.pressure.fetch_pressure()),
        _attempt("sleep", p.sleep, sleep),
        _attempt("movement", p.movement, movement),
        _attempt("heart_rate", p.heart_rate, lambda: p.heart_rate.fetch_heart_rate_stats(hr_start, t)),
        _attempt("resting_heart_rate", p.heart_rate, lambda: p.heart_rate.fetch_resting_heart_rate(rest_start, t)),
        _attempt("hrv", p.heart_rate, lambda: p.heart_rate.fetch_hrv(rest_start, t)),
        _attempt("cycle", p.cycle, cycle),
        _attempt("calendar", p.calendar, calendar),
    )
    results: Dict[str, FieldResult] = {r.source: r for r in gathered}
    results["location"] = await location_task

    record = build_record(t, results, intensity=intensity, symptoms=symptoms)
    return AssemblyReport(record=record, results=results)


def build_record(
    t: datetime,
    results: Dict[str, FieldResult],
    intensity: float = DEFAULT_INTENSITY,
    symptoms: Optional[Symptoms] = None,
) -> MigraineRecord:
    """Map per-source outcomes onto record fields, applying the fallbacks."""
    def result(name: str) -> FieldResult:
        return results.get(name) or FieldResult.absent(name)

    fields: Dict[str, Any] = {
        "timestamp": t,
        "intensity": intensity,
        "symptoms": symptoms or Symptoms(),
        "step_count": result("steps").value_or(0),
        "pressure": result("pressure").value_or(None),
        "resting_heart_rate": result("resting_heart_rate").value_or(None),
        "heart_rate_variability": result("hrv").value_or(None),
        "cycle_phase": result("cycle").value_or(None),
        "calendar_context": result("calendar").value_or(None),
    }

    weather = result("weather")
    if weather.is_present:
        fields["temperature"] = float(weather.value.temperature)
        fields["humidity"] = weather.value.humidity
        fields["weather_condition"] = weather.value.condition
    else:
        fields["temperature"] = math.nan

    sleep = result("sleep")
    if sleep.is_present:
        fields["sleep_start"] = sleep.value.start
        fields["sleep_end"] = sleep.value.end
        fields["sleep_duration"] = sleep.value.duration

    movement = result("movement")
    if movement.is_present:
        fields["movement_state"] = movement.value.state
        fields["movement_confidence"] = movement.value.confidence

    hr = result("heart_rate")
    if hr.is_present:
        fields["average_heart_rate"] = hr.value.average
        fields["max_heart_rate"] = hr.value.max

    fix = result("location")
    if fix.is_present:
        fields["location_latitude"], fields["location_longitude"] = fix.value

    return MigraineRecord(**fields)


# ==============================
# Logging session
# ==============================
class MigraineLogger:
    """
    Holds the in-progress intensity between logging actions. A successful
    save appends exactly one record and resets the intensity; a failed save
    raises PersistenceError and keeps it.
    """

    def __init__(
        self,
        providers: Providers,
        save: Callable[[MigraineRecord], Any],
        config: Optional[AssemblyConfig] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.providers = providers
        self.save = save
        self.config = config or AssemblyConfig()
        self.clock = clock
        self.intensity = self.config.default_intensity

    def set_intensity(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"intensity must be between 0 and 1, got {value}")
        self.intensity = value

    async def log_episode(self, symptoms: Optional[Symptoms] = None) -> AssemblyReport:
        report = await assemble_record(
            self.providers,
            t=self.clock(),
            intensity=self.intensity,
            symptoms=symptoms,
            config=self.config,
        )
        if report.errored_sources:
            log.info("Logged with degraded sources: %s", ", ".join(report.errored_sources))

        try:
            self.save(report.record)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(str(e)) from e

        self.intensity = self.config.default_intensity
        return report

    def log_episode_sync(self, symptoms: Optional[Symptoms] = None) -> AssemblyReport:
        return asyncio.run(self.log_episode(symptoms))


__all__ = [
    "AssemblyConfig",
    "AssemblyReport",
    "MigraineLogger",
    "assemble_record",
    "build_record",
    "local_now",
]
