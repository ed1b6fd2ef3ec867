# capture/providers.py
# -------------------------------------------------------------
# Data-source contracts used when an episode is logged.
# Real device integrations and test fakes implement the same
# async methods; the assembler only relies on what is here.
# -------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class SourceUnavailable(Exception):
    """The source exists but cannot produce a sample right now."""


class AuthorizationDenied(Exception):
    """The user refused access to a source."""

    def __init__(self, source: str, message: str | None = None):
        self.source = source
        super().__init__(message or f"Access to '{source}' was denied")


# ------------------------
# Provider payloads
# ------------------------

Location = Tuple[float, float]


@dataclass(frozen=True)
class WeatherBundle:
    temperature: float            # °C
    humidity: Optional[float] = None   # 0..1
    condition: Optional[str] = None


@dataclass(frozen=True)
class MovementReading:
    state: str         # stationary | walking | running | cycling | automotive | unknown
    confidence: int    # 0=low, 1=medium, 2=high


@dataclass(frozen=True)
class HeartRateStats:
    average: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class BleedingSample:
    day: datetime | date
    flow: str          # unspecified | light | medium | heavy | none


@dataclass(frozen=True)
class CalendarEvent:
    title: Optional[str]
    start: datetime
    end: datetime
    is_all_day: bool = False

    @property
    def duration(self):
        return self.end - self.start


# ------------------------
# Base provider
# ------------------------

class DataSource:
    """
    Base for all providers. Subclasses add the async fetch method(s) for their
    source; authorization is explicit and per source.
    """
    name = "source"

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED):
        self._status = status

    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def request_authorization(self) -> AuthorizationStatus:
        return self._status


class StepCountSource(DataSource):
    name = "steps"

    async def fetch_step_count(self, day: date) -> int:
        raise NotImplementedError


class WeatherSource(DataSource):
    name = "weather"

    async def fetch_weather_bundle(self, location: Location) -> WeatherBundle:
        raise NotImplementedError


class PressureSource(DataSource):
    name = "pressure"

    async def fetch_pressure(self) -> float:
        raise NotImplementedError


class SleepSource(DataSource):
    name = "sleep"

    async def fetch_asleep_intervals(self, start: datetime, end: datetime) -> List[Tuple[datetime, datetime]]:
        raise NotImplementedError


class MovementSource(DataSource):
    name = "movement"

    async def fetch_movement_state(self, start: datetime, end: datetime) -> Optional[MovementReading]:
        raise NotImplementedError


class HeartRateSource(DataSource):
    name = "heart_rate"

    async def fetch_heart_rate_stats(self, start: datetime, end: datetime) -> HeartRateStats:
        raise NotImplementedError

    async def fetch_resting_heart_rate(self, start: datetime, end: datetime) -> Optional[float]:
        raise NotImplementedError

    async def fetch_hrv(self, start: datetime, end: datetime) -> Optional[float]:
        raise NotImplementedError


class CycleSource(DataSource):
    name = "cycle"

    async def fetch_bleeding_samples(self, start: datetime, end: datetime) -> List[BleedingSample]:
        raise NotImplementedError


class CalendarSource(DataSource):
    name = "calendar"

    async def fetch_calendar_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        raise NotImplementedError


class LocationSource(DataSource):
    name = "location"

    async def request_location_fix(self, timeout: float) -> Location:
        raise NotImplementedError


@dataclass
class Providers:
    """Injected set of sources. A source left as None is treated as absent."""
    steps: Optional[StepCountSource] = None
    weather: Optional[WeatherSource] = None
    pressure: Optional[PressureSource] = None
    sleep: Optional[SleepSource] = None
    movement: Optional[MovementSource] = None
    heart_rate: Optional[HeartRateSource] = None
    cycle: Optional[CycleSource] = None
    calendar: Optional[CalendarSource] = None
    location: Optional[LocationSource] = None

    def configured(self) -> List[DataSource]:
        return [getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None]

    def authorization_report(self) -> dict:
        return {src.name: src.authorization_status() for src in self.configured()}

    async def request_all_authorizations(self) -> dict:
        """Ask each undetermined source for access; returns the resulting statuses."""
        out = {}
        for src in self.configured():
            status = src.authorization_status()
            if status is AuthorizationStatus.NOT_DETERMINED:
                status = await src.request_authorization()
            out[src.name] = status
        return out


__all__ = [
    "AuthorizationStatus",
    "AuthorizationDenied",
    "SourceUnavailable",
    "WeatherBundle",
    "MovementReading",
    "HeartRateStats",
    "BleedingSample",
    "CalendarEvent",
    "DataSource",
    "StepCountSource",
    "WeatherSource",
    "PressureSource",
    "SleepSource",
    "MovementSource",
    "HeartRateSource",
    "CycleSource",
    "CalendarSource",
    "LocationSource",
    "Providers",
    "Location",
]
