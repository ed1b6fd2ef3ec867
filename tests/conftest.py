import asyncio
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so tests can import local modules
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis.models import MigraineRecord, Symptoms  # noqa: E402
from capture.providers import (  # noqa: E402
    AuthorizationStatus,
    BleedingSample,
    CalendarEvent,
    CalendarSource,
    CycleSource,
    HeartRateSource,
    HeartRateStats,
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

NOW = datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)


class _Fake:
    """Returns `value`, or raises `error` when set; records every call."""

    def __init__(self, value=None, error=None, status=AuthorizationStatus.AUTHORIZED, delay=0.0):
        super().__init__(status)
        self.value = value
        self.error = error
        self.delay = delay
        self.calls = []

    async def _answer(self, *args):
        self.calls.append(args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


class FakeSteps(_Fake, StepCountSource):
    async def fetch_step_count(self, day):
        return await self._answer(day)


class FakeWeather(_Fake, WeatherSource):
    async def fetch_weather_bundle(self, location):
        return await self._answer(location)


class FakePressure(_Fake, PressureSource):
    async def fetch_pressure(self):
        return await self._answer()


class FakeSleep(_Fake, SleepSource):
    async def fetch_asleep_intervals(self, start, end):
        return await self._answer(start, end)


class FakeMovement(_Fake, MovementSource):
    async def fetch_movement_state(self, start, end):
        return await self._answer(start, end)


class FakeHeartRate(_Fake, HeartRateSource):
    def __init__(self, value=None, resting=None, hrv=None, **kw):
        super().__init__(value, **kw)
        self.resting = resting
        self.hrv = hrv

    async def fetch_heart_rate_stats(self, start, end):
        return await self._answer(start, end)

    async def fetch_resting_heart_rate(self, start, end):
        if self.error is not None:
            raise self.error
        return self.resting

    async def fetch_hrv(self, start, end):
        if self.error is not None:
            raise self.error
        return self.hrv


class FakeCycle(_Fake, CycleSource):
    async def fetch_bleeding_samples(self, start, end):
        return await self._answer(start, end)


class FakeCalendar(_Fake, CalendarSource):
    async def fetch_calendar_events(self, start, end):
        return await self._answer(start, end)


class FakeLocation(_Fake, LocationSource):
    async def request_location_fix(self, timeout):
        return await self._answer(timeout)


def healthy_providers(now: datetime = NOW) -> Providers:
    return Providers(
        steps=FakeSteps(4200),
        weather=FakeWeather(WeatherBundle(temperature=18.5, humidity=0.62, condition="light_rain")),
        pressure=FakePressure(1008.4),
        sleep=FakeSleep([
            (now - timedelta(hours=15, minutes=30), now - timedelta(hours=12)),
            (now - timedelta(hours=11, minutes=50), now - timedelta(hours=8, minutes=30)),
        ]),
        movement=FakeMovement(MovementReading("walking", 1)),
        heart_rate=FakeHeartRate(HeartRateStats(average=74.0, max=101.0), resting=58.0, hrv=42.5),
        cycle=FakeCycle([BleedingSample(date(2024, 3, 10), "medium")]),
        calendar=FakeCalendar([
            CalendarEvent("Standup", now - timedelta(minutes=15), now + timedelta(minutes=15)),
        ]),
        location=FakeLocation((52.52, 13.405)),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def providers():
    return healthy_providers()


@pytest.fixture
def db_path(tmp_path):
    from database.db import init_db

    path = tmp_path / "journal.sqlite3"
    init_db(path)
    return path


def make_record(ts: datetime, **kw) -> MigraineRecord:
    symptoms = kw.pop("symptoms", None) or Symptoms()
    return MigraineRecord(timestamp=ts, symptoms=symptoms, **kw)


@pytest.fixture
def record_factory():
    return make_record
