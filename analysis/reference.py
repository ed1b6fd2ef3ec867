# analysis/reference.py
from __future__ import annotations

from datetime import datetime, time
from typing import Any, Dict, List
import math
import numpy as np
import pandas as pd

from .models import MigraineRecord, SYMPTOM_FLAG_GROUPS, MOVEMENT_CONFIDENCE
from .stats import HistorySummary


# --------------------------------------------------------------------------------------
# Display names, units and bands used by the CLI listing, the PDF and the dashboard.
# --------------------------------------------------------------------------------------

# Human-friendly display names for record / frame columns
DISPLAY = {
    "timestamp": "Logged at",
    "intensity": "Intensity (0–1)",
    "score": "Intensity (0–10)",
    "step_count": "Steps (today)",
    "temperature": "Temperature (°C)",
    "pressure": "Pressure (hPa)",
    "humidity": "Humidity (%)",
    "weather_condition": "Weather",
    "sleep_start": "Fell asleep",
    "sleep_end": "Woke up",
    "sleep_hours": "Sleep (h)",
    "movement_state": "Movement",
    "movement_confidence": "Movement confidence",
    "average_heart_rate": "Average Heart Rate (bpm)",
    "max_heart_rate": "Max Heart Rate (bpm)",
    "resting_heart_rate": "Resting Heart Rate (bpm)",
    "heart_rate_variability": "Heart Rate Variability (ms)",
    "cycle_phase": "Cycle phase",
    "location": "Location",
    "calendar_context": "Calendar",
    "pain_description": "Pain description",
    "pain_location": "Pain location",
    "onset_pattern": "Onset",
    "mood": "Mood",
}

# (upper bound exclusive, description)
INTENSITY_DESCRIPTIONS = [
    (0.2, "Very Mild"),
    (0.4, "Mild"),
    (0.6, "Moderate"),
    (0.8, "Severe"),
]
TOP_DESCRIPTION = "Very Severe"

# (upper bound exclusive, colour)
INTENSITY_COLOURS = [
    (0.3, "green"),
    (0.5, "yellow"),
    (0.7, "orange"),
]
TOP_COLOUR = "red"

# Keyword → icon category; first match wins
WEATHER_ICONS = [
    ("thunder", "thunderstorm"),
    ("rain", "rain"),
    ("drizzle", "rain"),
    ("snow", "snow"),
    ("sleet", "snow"),
    ("fog", "fog"),
    ("haze", "fog"),
    ("wind", "wind"),
    ("breez", "wind"),
    ("cloud", "cloud"),
    ("clear", "clear"),
    ("sun", "clear"),
]
DEFAULT_WEATHER_ICON = "partly_cloudy"

# Section titles for the symptom checklist
SYMPTOM_GROUP_TITLES = {
    "sensory": "Sensory Symptoms",
    "facial": "Facial Symptoms",
    "aura": "Aura",
    "prodrome": "Prodrome",
}


def intensity_description(intensity: float) -> str:
    for bound, label in INTENSITY_DESCRIPTIONS:
        if intensity < bound:
            return label
    return TOP_DESCRIPTION


def intensity_colour(intensity: float) -> str:
    for bound, colour in INTENSITY_COLOURS:
        if intensity < bound:
            return colour
    return TOP_COLOUR


def weather_icon(condition: str | None) -> str:
    c = (condition or "").lower()
    for keyword, icon in WEATHER_ICONS:
        if keyword in c:
            return icon
    return DEFAULT_WEATHER_ICON


def display_condition(condition: str | None) -> str:
    """'partly_cloudy' → 'Partly Cloudy'."""
    if not condition:
        return ""
    return condition.replace("_", " ").title()


def display_flag(name: str) -> str:
    return name.replace("_", " ").capitalize()


def _fmt(x: Any) -> str:
    if x is None or (isinstance(x, float) and (math.isnan(x) or np.isinf(x))):
        return ""
    if isinstance(x, float):
        # smart rounding
        if abs(x) >= 100:
            return f"{x:.0f}"
        if abs(x) >= 10:
            return f"{x:.1f}"
        return f"{x:.2f}"
    return str(x)


def record_rows(record: MigraineRecord) -> List[Dict[str, str]]:
    """
    Label/value pairs for the detail view, in display order. Fields with no
    data are left out rather than shown as blanks.
    """
    r = record
    rows: List[Dict[str, str]] = []

    def add(key: str, value: Any):
        text = value if isinstance(value, str) else _fmt(value)
        if text:
            rows.append({"field": DISPLAY.get(key, key), "value": text})

    add("timestamp", r.timestamp.strftime("%Y-%m-%d %H:%M"))
    add("score", f"{r.score}/10 ({intensity_description(r.intensity)})")
    add("step_count", str(r.step_count))
    if r.has_temperature:
        add("temperature", r.temperature)
    add("pressure", r.pressure)
    if r.humidity is not None:
        add("humidity", f"{r.humidity * 100:.0f}")
    add("weather_condition", display_condition(r.weather_condition))
    if r.has_sleep:
        add("sleep_start", r.sleep_start.strftime("%H:%M"))
        add("sleep_end", r.sleep_end.strftime("%H:%M"))
        add("sleep_hours", r.sleep_duration / 3600.0)
    if r.movement_state:
        conf = MOVEMENT_CONFIDENCE.get(r.movement_confidence, "")
        add("movement_state", f"{r.movement_state} ({conf})" if conf else r.movement_state)
    add("average_heart_rate", r.average_heart_rate)
    add("max_heart_rate", r.max_heart_rate)
    add("resting_heart_rate", r.resting_heart_rate)
    add("heart_rate_variability", r.heart_rate_variability)
    add("cycle_phase", r.cycle_phase)
    if r.has_location:
        add("location", f"{r.location_latitude:.4f}, {r.location_longitude:.4f}")
    add("calendar_context", "; ".join(r.calendar_lines))

    s = r.symptoms
    add("pain_description", s.pain_description or "")
    add("pain_location", s.pain_location or "")
    add("onset_pattern", s.onset_pattern or "")
    add("mood", s.mood or "")
    for group, active in s.flags_by_group().items():
        if active:
            rows.append({
                "field": SYMPTOM_GROUP_TITLES[group],
                "value": ", ".join(display_flag(f) for f in active),
            })
    return rows


def summary_rows(summary: HistorySummary) -> List[Dict[str, str]]:
    """Label/value pairs for a HistorySummary; statistics without data show 'n/a'."""
    s = summary

    def show(v: Any, unit: str = "") -> str:
        if v is None:
            return "n/a"
        if isinstance(v, tuple):
            return f"{_fmt(v[0])}–{_fmt(v[1])}{unit}"
        if isinstance(v, time):
            return v.strftime("%H:%M")
        if isinstance(v, datetime):
            return v.strftime("%Y-%m-%d %H:%M")
        text = _fmt(v) if isinstance(v, float) else str(v)
        return f"{text}{unit}"

    intensity = "n/a"
    if s.mean_intensity is not None:
        intensity = f"{_fmt(s.mean_intensity)} ({intensity_description(s.mean_intensity)}, {s.mean_score:.1f}/10)"

    hour = "n/a" if s.most_common_hour is None else f"{s.most_common_hour:02d}:00"
    top_symptoms = [f"{display_flag(k)} ({v})" for k, v in
                    sorted(s.symptom_frequencies.items(), key=lambda kv: (-kv[1], kv[0])) if v][:5]
    top_tags = [f"{k} ({v})" for k, v in list(s.pain_location_tags.items())[:5]]

    rows = [
        ("Episodes", str(s.count)),
        ("First logged", show(s.first_logged)),
        ("Last logged", show(s.last_logged)),
        ("Mean intensity", intensity),
        ("Median intensity", show(s.median_intensity)),
        ("Most common hour", hour),
        ("Most common weekday", s.most_common_weekday_name or "n/a"),
        ("Most common weather", display_condition(s.most_common_weather) or "n/a"),
        ("Most common movement", show(s.most_common_movement)),
        ("Most common cycle phase", show(s.most_common_cycle_phase)),
        ("Most common pain description", show(s.most_common_pain_description)),
        ("Most common pain location", show(s.most_common_pain_location)),
        ("Most common onset", show(s.most_common_onset_pattern)),
        ("Most common mood", show(s.most_common_mood)),
        ("Average bedtime", show(s.mean_bedtime)),
        ("Average wake time", show(s.mean_wake_time)),
        ("Median sleep", show(s.median_sleep_hours, " h")),
        ("Sleep range", show(s.sleep_hours_range, " h")),
        ("Median steps", show(s.median_steps)),
        ("Temperature range", show(s.temperature_range, " °C")),
        ("Pressure range", show(s.pressure_range, " hPa")),
        ("Mean resting HR", show(s.mean_resting_heart_rate, " bpm")),
        ("Mean HRV", show(s.mean_hrv, " ms")),
        ("Top symptoms", ", ".join(top_symptoms) or "n/a"),
        ("Pain locations", ", ".join(top_tags) or "n/a"),
    ]
    return [{"field": k, "value": v} for k, v in rows]


def symptom_checklist_table() -> pd.DataFrame:
    """Every symptom flag with its group, for the dashboard's reference tab."""
    rows = [
        {"Group": SYMPTOM_GROUP_TITLES[group], "Symptom": display_flag(flag), "Key": flag}
        for group, flags in SYMPTOM_FLAG_GROUPS.items()
        for flag in flags
    ]
    return pd.DataFrame(rows)


def intensity_scale_table() -> pd.DataFrame:
    rows = []
    lower = 0.0
    for bound, label in INTENSITY_DESCRIPTIONS + [(1.0, TOP_DESCRIPTION)]:
        top_score = 10 if bound == 1.0 else round(bound * 10) - 1
        rows.append({
            "Intensity": f"{lower:.1f}–{bound:.1f}",
            "Score": f"{round(lower * 10)}–{top_score}",
            "Description": label,
        })
        lower = bound
    return pd.DataFrame(rows)


# What this module exposes
__all__ = [
    "DISPLAY",
    "SYMPTOM_GROUP_TITLES",
    "intensity_description",
    "intensity_colour",
    "weather_icon",
    "display_condition",
    "display_flag",
    "record_rows",
    "summary_rows",
    "symptom_checklist_table",
    "intensity_scale_table",
]
