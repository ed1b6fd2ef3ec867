# analysis/models.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import math


# ------------------------
# Categorical vocabularies
# ------------------------

MOVEMENT_STATES = ("stationary", "walking", "running", "cycling", "automotive", "unknown")

# 0=low, 1=medium, 2=high
MOVEMENT_CONFIDENCE = {0: "low", 1: "medium", 2: "high"}

CYCLE_PHASES = ("Menstruation", "Follicular", "Ovulation", "Luteal", "unknown")

SYMPTOM_FLAG_GROUPS: Dict[str, Tuple[str, ...]] = {
    "sensory": ("light_sensitivity", "sound_sensitivity", "smell_sensitivity", "nausea", "vomiting"),
    "facial": ("facial_pain", "jaw_pain", "eye_watering", "nasal_congestion"),
    "aura": ("visual_aura", "sensory_aura", "speech_difficulty"),
    "prodrome": ("neck_stiffness", "fatigue", "yawning", "food_cravings"),
}

SYMPTOM_FLAGS: Tuple[str, ...] = tuple(f for group in SYMPTOM_FLAG_GROUPS.values() for f in group)

SYMPTOM_CHOICES = ("pain_description", "pain_location", "onset_pattern", "mood")

DEFAULT_INTENSITY = 0.5


# ------------------------
# Symptom checklist
# ------------------------

@dataclass(frozen=True)
class Symptoms:
    """User-entered qualitative tags. Everything defaults to unset/False."""
    pain_description: Optional[str] = None
    pain_location: Optional[str] = None
    onset_pattern: Optional[str] = None
    mood: Optional[str] = None
    pain_location_tags: Tuple[str, ...] = ()

    # sensory
    light_sensitivity: bool = False
    sound_sensitivity: bool = False
    smell_sensitivity: bool = False
    nausea: bool = False
    vomiting: bool = False
    # facial
    facial_pain: bool = False
    jaw_pain: bool = False
    eye_watering: bool = False
    nasal_congestion: bool = False
    # aura
    visual_aura: bool = False
    sensory_aura: bool = False
    speech_difficulty: bool = False
    # prodrome
    neck_stiffness: bool = False
    fatigue: bool = False
    yawning: bool = False
    food_cravings: bool = False

    def __post_init__(self):
        # lists coming from JSON / forms are normalised to tuples
        object.__setattr__(self, "pain_location_tags", tuple(self.pain_location_tags or ()))

    def active_flags(self) -> List[str]:
        return [name for name in SYMPTOM_FLAGS if getattr(self, name)]

    def flags_by_group(self) -> Dict[str, List[str]]:
        return {
            group: [name for name in names if getattr(self, name)]
            for group, names in SYMPTOM_FLAG_GROUPS.items()
        }


# ------------------------
# Migraine record
# ------------------------

# Fields the user may change after the record is created.
EDITABLE_FIELDS = frozenset({"intensity", "symptoms"})


@dataclass(frozen=True)
class MigraineRecord:
    """
    One logged episode with its contextual sample bundle.

    Absent optional values are None. Temperature is the exception: an
    unavailable weather source is recorded as NaN so that a real 0°C reading
    stays distinguishable.
    """
    timestamp: datetime
    intensity: float = DEFAULT_INTENSITY
    step_count: int = 0
    temperature: float = math.nan
    pressure: Optional[float] = None
    humidity: Optional[float] = None
    weather_condition: Optional[str] = None

    sleep_start: Optional[datetime] = None
    sleep_end: Optional[datetime] = None
    sleep_duration: Optional[float] = None  # seconds

    movement_state: Optional[str] = None
    movement_confidence: Optional[int] = None

    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    heart_rate_variability: Optional[float] = None  # ms

    cycle_phase: Optional[str] = None

    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None

    calendar_context: Optional[str] = None

    symptoms: Symptoms = field(default_factory=Symptoms)

    def __post_init__(self):
        _check_intensity(self.intensity)
        if self.step_count < 0:
            raise ValueError(f"step_count must be non-negative, got {self.step_count}")

        sleep = (self.sleep_start, self.sleep_end, self.sleep_duration)
        if any(v is None for v in sleep) and any(v is not None for v in sleep):
            raise ValueError("sleep_start, sleep_end and sleep_duration must be set together")

        if (self.location_latitude is None) != (self.location_longitude is None):
            raise ValueError("location_latitude and location_longitude must be set together")

        if self.movement_state is not None and self.movement_state not in MOVEMENT_STATES:
            raise ValueError(
                f"Unknown movement state '{self.movement_state}'. "
                f"Expected one of: {', '.join(MOVEMENT_STATES)}"
            )
        if self.movement_confidence is not None and self.movement_confidence not in MOVEMENT_CONFIDENCE:
            raise ValueError(f"movement_confidence must be 0, 1 or 2, got {self.movement_confidence}")

    # -- derived --------------------------------------------------------

    @property
    def has_temperature(self) -> bool:
        return not math.isnan(self.temperature)

    @property
    def has_sleep(self) -> bool:
        return self.sleep_duration is not None

    @property
    def has_location(self) -> bool:
        return self.location_latitude is not None

    @property
    def score(self) -> int:
        """Intensity on the 0..10 display scale."""
        return int(self.intensity * 10)

    @property
    def calendar_lines(self) -> List[str]:
        return self.calendar_context.splitlines() if self.calendar_context else []

    # -- editing --------------------------------------------------------

    def edited(self, **changes: Any) -> "MigraineRecord":
        """
        Return a copy with user-editable fields changed. Symptom fields may be
        passed directly (e.g. nausea=True) or as a whole `symptoms` value.
        """
        symptom_names = {f.name for f in fields(Symptoms)}
        symptom_changes = {k: changes.pop(k) for k in list(changes) if k in symptom_names}

        locked = set(changes) - EDITABLE_FIELDS
        if locked:
            raise ValueError(f"Fields cannot be edited after creation: {', '.join(sorted(locked))}")

        if symptom_changes:
            base = changes.get("symptoms", self.symptoms)
            changes["symptoms"] = replace(base, **symptom_changes)
        return replace(self, **changes)

    # -- serialisation --------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-safe mapping (ISO timestamps, NaN temperature as None)."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            if f.name == "symptoms":
                continue
            v = getattr(self, f.name)
            if isinstance(v, datetime):
                v = v.isoformat()
            out[f.name] = v
        if not self.has_temperature:
            out["temperature"] = None
        sym = asdict(self.symptoms)
        sym["pain_location_tags"] = list(self.symptoms.pain_location_tags)
        out.update(sym)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigraineRecord":
        if "timestamp" not in data or data["timestamp"] in (None, ""):
            raise KeyError("Record is missing required field 'timestamp'")

        symptom_names = {f.name for f in fields(Symptoms)}
        record_names = {f.name for f in fields(cls)} - {"symptoms"}

        kwargs: Dict[str, Any] = {}
        for name in record_names:
            if name in data and data[name] is not None:
                kwargs[name] = data[name]

        for name in ("timestamp", "sleep_start", "sleep_end"):
            if name in kwargs:
                kwargs[name] = parse_timestamp(kwargs[name])

        temp = data.get("temperature")
        kwargs["temperature"] = math.nan if temp is None else float(temp)
        if "intensity" in kwargs:
            kwargs["intensity"] = float(kwargs["intensity"])
        if "step_count" in kwargs:
            kwargs["step_count"] = int(kwargs["step_count"])
        if "movement_confidence" in kwargs:
            kwargs["movement_confidence"] = int(kwargs["movement_confidence"])

        sym_kwargs: Dict[str, Any] = {}
        for name in symptom_names:
            if name in data and data[name] is not None:
                sym_kwargs[name] = _flag(name, data[name]) if name in SYMPTOM_FLAGS else data[name]
        return cls(symptoms=Symptoms(**sym_kwargs), **kwargs)


def _flag(name: str, value: Any) -> bool:
    # only real booleans or 0/1 count; "false" must not switch a flag on
    if isinstance(value, str) or value not in (True, False):
        raise ValueError(f"{name} must be true/false or 0/1, got {value!r}")
    return bool(value)


def parse_timestamp(value: Any) -> datetime:
    """ISO text or datetime -> offset-aware datetime.

    A trailing "Z" is read as UTC. Values without an offset are taken as
    local wall-clock time, the same way the logger stamps new episodes.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if not isinstance(value, datetime):
        raise TypeError(f"expected an ISO timestamp, got {value!r}")
    return value if value.tzinfo is not None else value.astimezone()


def _check_intensity(value: float) -> None:
    if value is None or math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ValueError(f"intensity must be between 0 and 1, got {value}")


def sort_for_display(records: List[MigraineRecord]) -> List[MigraineRecord]:
    """Newest first."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


__all__ = [
    "MigraineRecord",
    "Symptoms",
    "MOVEMENT_STATES",
    "MOVEMENT_CONFIDENCE",
    "CYCLE_PHASES",
    "SYMPTOM_FLAG_GROUPS",
    "SYMPTOM_FLAGS",
    "SYMPTOM_CHOICES",
    "EDITABLE_FIELDS",
    "DEFAULT_INTENSITY",
    "parse_timestamp",
    "sort_for_display",
]
