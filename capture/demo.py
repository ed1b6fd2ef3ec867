# capture/demo.py
# -------------------------------------------------------------
# Fixed sample sources for the CLI `log` command and the
# dashboard preview. No device access; values are constant.
# -------------------------------------------------------------
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from .providers import (
    BleedingSample,
    CalendarEvent,
    CalendarSource,
    CycleSource,
    HeartRateSource,
    HeartRateStats,
    Location,
    LocationSource,
    MovementReading,
    MovementSource,
    PressureSource,
    Providers,
    SleepSource,
    StepCountSource,
    WeatherBundle,
    WeatherSource,
)

DEMO_STEPS = 1234
DEMO_WEATHER = WeatherBundle(temperature=21.0, humidity=0.55, condition="clear")
DEMO_PRESSURE = 1013.2
DEMO_SLEEP_HOURS = 7
DEMO_MOVEMENT = MovementReading("stationary", 2)
DEMO_HEART_RATE = HeartRateStats(average=72.0, max=96.0)
DEMO_RESTING_HR = 61.0
DEMO_HRV = 48.0
DEMO_LOCATION: Location = (51.5072, -0.1276)


class DemoSteps(StepCountSource):
    async def fetch_step_count(self, day: date) -> int:
        return DEMO_STEPS


class DemoWeather(WeatherSource):
    async def fetch_weather_bundle(self, location: Location) -> WeatherBundle:
        return DEMO_WEATHER


class DemoPressure(PressureSource):
    async def fetch_pressure(self) -> float:
        return DEMO_PRESSURE


class DemoSleep(SleepSource):
    """Last night 23:00 → 06:00 with a short awakening at 02:00."""

    async def fetch_asleep_intervals(self, start: datetime, end: datetime) -> List[Tuple[datetime, datetime]]:
        wake = end.replace(hour=6, minute=0, second=0, microsecond=0)
        if wake > end:
            wake -= timedelta(days=1)
        bed = wake - timedelta(hours=DEMO_SLEEP_HOURS)
        mid = bed + timedelta(hours=3)
        return [(bed, mid), (mid + timedelta(minutes=10), wake)]


class DemoMovement(MovementSource):
    async def fetch_movement_state(self, start: datetime, end: datetime) -> Optional[MovementReading]:
        return DEMO_MOVEMENT


class DemoHeartRate(HeartRateSource):
    async def fetch_heart_rate_stats(self, start: datetime, end: datetime) -> HeartRateStats:
        return DEMO_HEART_RATE

    async def fetch_resting_heart_rate(self, start: datetime, end: datetime) -> Optional[float]:
        return DEMO_RESTING_HR

    async def fetch_hrv(self, start: datetime, end: datetime) -> Optional[float]:
        return DEMO_HRV


class DemoCycle(CycleSource):
    """Bleeding started 8 days before `end`, lasting 4 days."""

    async def fetch_bleeding_samples(self, start: datetime, end: datetime) -> List[BleedingSample]:
        first = end.date() - timedelta(days=8)
        flows = ["heavy", "medium", "light", "light"]
        return [BleedingSample(first + timedelta(days=i), flow) for i, flow in enumerate(flows)]


class DemoCalendar(CalendarSource):
    async def fetch_calendar_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        now = start + timedelta(days=3)
        return [
            CalendarEvent("Team meeting", now - timedelta(hours=5), now - timedelta(hours=3)),
            CalendarEvent("Flight", now - timedelta(days=1, hours=6), now - timedelta(days=1, hours=2)),
            CalendarEvent("Conference", (now - timedelta(days=2)).replace(hour=0, minute=0, second=0, microsecond=0),
                          (now - timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0),
                          is_all_day=True),
        ]


class DemoLocation(LocationSource):
    async def request_location_fix(self, timeout: float) -> Location:
        return DEMO_LOCATION


def demo_providers() -> Providers:
    return Providers(
        steps=DemoSteps(),
        weather=DemoWeather(),
        pressure=DemoPressure(),
        sleep=DemoSleep(),
        movement=DemoMovement(),
        heart_rate=DemoHeartRate(),
        cycle=DemoCycle(),
        calendar=DemoCalendar(),
        location=DemoLocation(),
    )


__all__ = ["demo_providers"]
