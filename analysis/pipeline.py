# analysis/pipeline.py
from __future__ import annotations

from pathlib import Path
import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

# Use Matplotlib only for PNG exports (no extra deps)
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .models import MigraineRecord, SYMPTOM_FLAGS
from .stats import WEEKDAY_NAMES, weekday_number

log = logging.getLogger(__name__)


# ==============================
# Records → DataFrame
# ==============================
def records_to_frame(records: Sequence[MigraineRecord]) -> pd.DataFrame:
    """
    One row per record, oldest first, with a few derived columns:
      date, hour, weekday (1 = Sunday), score (0..10), sleep_hours.
    Missing temperature stays NaN; other missing values become NaN/None.
    """
    records = sorted(records, key=lambda r: r.timestamp)
    rows = [r.to_dict() for r in records]
    df = pd.DataFrame(rows)
    if df.empty:
        return df

    # keep real datetimes (ISO text in to_dict) so offsets survive
    df["timestamp"] = [r.timestamp for r in records]
    df["date"] = pd.to_datetime([r.timestamp.date() for r in records])
    df["hour"] = [r.timestamp.hour for r in records]
    df["weekday"] = [weekday_number(r.timestamp) for r in records]
    df["score"] = [r.score for r in records]
    df["sleep_hours"] = pd.to_numeric(df["sleep_duration"], errors="coerce") / 3600.0
    df["temperature"] = pd.to_numeric(df["temperature"], errors="coerce").astype(float)
    return df.reset_index(drop=True)


def episodes_per_day(df: pd.DataFrame) -> pd.DataFrame:
    """Daily episode count and mean intensity (days without episodes omitted)."""
    if df is None or df.empty:
        return pd.DataFrame(columns=["date", "episodes", "mean_intensity"])
    out = (
        df.groupby("date", as_index=False)
        .agg(episodes=("intensity", "size"), mean_intensity=("intensity", "mean"))
        .sort_values("date")
        .reset_index(drop=True)
    )
    return out


def hour_distribution(df: pd.DataFrame) -> pd.Series:
    counts = df["hour"].value_counts() if df is not None and not df.empty else pd.Series(dtype=int)
    return counts.reindex(range(24), fill_value=0)


def weekday_distribution(df: pd.DataFrame) -> pd.Series:
    counts = df["weekday"].value_counts() if df is not None and not df.empty else pd.Series(dtype=int)
    out = counts.reindex(range(1, 8), fill_value=0)
    out.index = [WEEKDAY_NAMES[i][:3] for i in out.index]
    return out


def symptom_table(df: pd.DataFrame) -> pd.DataFrame:
    """Share of episodes with each symptom flag, most frequent first."""
    if df is None or df.empty:
        return pd.DataFrame(columns=["symptom", "count", "share_pct"])
    present = [c for c in SYMPTOM_FLAGS if c in df.columns]
    counts = df[present].astype(bool).sum()
    out = pd.DataFrame({
        "symptom": counts.index,
        "count": counts.values.astype(int),
        "share_pct": np.round(counts.values / len(df) * 100.0, 1),
    })
    return out.sort_values(["count", "symptom"], ascending=[False, True]).reset_index(drop=True)


# ==============================
# Output saving (CSV + PNG charts)
# ==============================
def _plot_line(dates: pd.Series, values: pd.Series, title: str, ylabel: str, save_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 3))
    ax.plot(dates, values, marker="o", linewidth=1.5, markersize=3)
    ax.set_title(title)
    ax.set_ylabel(ylabel)
    ax.set_xlabel("Date")
    ax.grid(True, linestyle="--", linewidth=0.5, alpha=0.6)
    fig.autofmt_xdate()
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=160, bbox_inches="tight")
    plt.close(fig)


def _plot_bar(labels: List, values: List, title: str, xlabel: str, save_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 3))
    ax.bar([str(x) for x in labels], values, color="#6C93B0")
    ax.set_title(title)
    ax.set_ylabel("Episodes")
    ax.set_xlabel(xlabel)
    ax.grid(True, axis="y", linestyle="--", linewidth=0.5, alpha=0.6)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=160, bbox_inches="tight")
    plt.close(fig)


def frame_for_csv(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    if "timestamp" in out.columns:
        out["timestamp"] = [t.isoformat() for t in out["timestamp"]]
    if "date" in out.columns:
        out["date"] = pd.to_datetime(out["date"]).dt.strftime("%Y-%m-%d")
    if "pain_location_tags" in out.columns:
        out["pain_location_tags"] = [";".join(tags or []) for tags in out["pain_location_tags"]]
    return out


def save_history_outputs(out_dir: Path, records: Sequence[MigraineRecord]) -> Dict[str, Path]:
    """
    Write out_dir/history.csv plus PNG charts under out_dir/plots for every
    metric that has data. Returns {name: path} of what was written.
    """
    out_dir = Path(out_dir)
    plots_dir = out_dir / "plots"
    out_dir.mkdir(parents=True, exist_ok=True)

    df = records_to_frame(records)
    written: Dict[str, Path] = {}

    csv_path = out_dir / "history.csv"
    frame_for_csv(df).to_csv(csv_path, index=False)
    written["history.csv"] = csv_path
    log.info("Wrote %d records to %s", len(df), csv_path)

    if df.empty:
        return written

    daily = episodes_per_day(df)
    daily_path = out_dir / "daily.csv"
    frame_for_csv(daily).to_csv(daily_path, index=False)
    written["daily.csv"] = daily_path

    # Line charts for per-episode metrics
    metrics: List[Tuple[str, str, str]] = [
        ("score", "Intensity (0–10)", "intensity.png"),
        ("sleep_hours", "Sleep before episode (h)", "sleep_hours.png"),
        ("step_count", "Steps", "steps.png"),
        ("temperature", "Temperature (°C)", "temperature.png"),
        ("pressure", "Pressure (hPa)", "pressure.png"),
        ("resting_heart_rate", "Resting HR (bpm)", "resting_heart_rate.png"),
        ("heart_rate_variability", "HRV (ms)", "hrv.png"),
    ]
    for col, title, fname in metrics:
        if col not in df.columns:
            continue
        values = pd.to_numeric(df[col], errors="coerce")
        if not values.notna().any():
            continue
        try:
            _plot_line(df["date"], values, title, "", plots_dir / fname)
            written[fname] = plots_dir / fname
        except (ValueError, TypeError) as e:
            log.warning("Skipped chart %s: %s", fname, e)

    hours = hour_distribution(df)
    _plot_bar(list(hours.index), list(hours.values), "Episodes by hour", "Hour", plots_dir / "by_hour.png")
    written["by_hour.png"] = plots_dir / "by_hour.png"

    days = weekday_distribution(df)
    _plot_bar(list(days.index), list(days.values), "Episodes by weekday", "Weekday", plots_dir / "by_weekday.png")
    written["by_weekday.png"] = plots_dir / "by_weekday.png"

    return written


__all__ = [
    "records_to_frame",
    "episodes_per_day",
    "hour_distribution",
    "weekday_distribution",
    "symptom_table",
    "frame_for_csv",
    "save_history_outputs",
]
