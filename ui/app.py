# ui/app.py
# Read-only history dashboard:  streamlit run ui/app.py
from __future__ import annotations

from pathlib import Path
import sys
from typing import List, Optional, Tuple

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio

# pastels for charts
COLORWAY = ["#6C93B0", "#A4B59C", "#C5A0B6", "#BFAE88", "#95B8D6", "#BFB7C7"]

pio.templates["jpn_pastel"] = dict(
    layout=dict(
        colorway=COLORWAY,
        font=dict(family="Inter, 'Noto Sans JP', system-ui", size=13, color="#1C1F24"),
        paper_bgcolor="rgba(0,0,0,0)",   # let our CSS show through
        plot_bgcolor="#F5F7F2",
        xaxis=dict(gridcolor="#E5E1DA", zerolinecolor="#E5E1DA"),
        yaxis=dict(gridcolor="#E5E1DA", zerolinecolor="#E5E1DA"),
        margin=dict(l=40,r=20,t=50,b=40),
        hoverlabel=dict(bgcolor="#FAFAF7", bordercolor="#ECE7E1", font_color="#1C1F24"),
    )
)
px.defaults.template = "jpn_pastel"
px.defaults.color_discrete_sequence = COLORWAY

# intensity colour band → chart colour
BAND_COLOURS = {"green": "#A4B59C", "yellow": "#E3C979", "orange": "#E0A064", "red": "#C9737A"}


# -------------------------------------------------
# Ensure project root is on sys.path (fixes imports)
# -------------------------------------------------
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis.models import MigraineRecord
from analysis.pipeline import (
    records_to_frame, hour_distribution, weekday_distribution, symptom_table,
)
from analysis.reference import (
    intensity_colour, record_rows, summary_rows, symptom_checklist_table, intensity_scale_table,
)
from analysis.stats import HistorySummary, summarize
from database.db import init_db, list_logs


# ==============================
# Data + figures (no Streamlit calls)
# ==============================
def load_history(db_path: Optional[Path] = None) -> Tuple[List[MigraineRecord], pd.DataFrame, HistorySummary]:
    init_db(db_path)
    records = list_logs(db_path)
    return records, records_to_frame(records), summarize(records)


def intensity_figure(df: pd.DataFrame) -> go.Figure:
    plot_df = df.assign(band=[intensity_colour(v) for v in df["intensity"]])
    fig = px.scatter(
        plot_df, x="timestamp", y="score", color="band",
        color_discrete_map=BAND_COLOURS, title="Intensity over time (0–10)",
        hover_data=["weather_condition", "cycle_phase"],
    )
    fig.update_layout(showlegend=False, yaxis_range=[-0.5, 10.5])
    return fig


def hour_figure(df: pd.DataFrame) -> go.Figure:
    counts = hour_distribution(df)
    return px.bar(x=counts.index, y=counts.values, labels={"x": "Hour", "y": "Episodes"},
                  title="Episodes by hour")


def weekday_figure(df: pd.DataFrame) -> go.Figure:
    counts = weekday_distribution(df)
    return px.bar(x=list(counts.index), y=counts.values, labels={"x": "Weekday", "y": "Episodes"},
                  title="Episodes by weekday")


def symptom_figure(df: pd.DataFrame) -> go.Figure:
    tbl = symptom_table(df)
    tbl = tbl[tbl["count"] > 0]
    return px.bar(tbl, x="count", y="symptom", orientation="h", title="Symptom frequency")


def metric_figure(df: pd.DataFrame, col: str, title: str) -> Optional[go.Figure]:
    if col not in df.columns or not pd.to_numeric(df[col], errors="coerce").notna().any():
        return None
    return px.line(df, x="timestamp", y=col, markers=True, title=title)


# ==============================
# Page
# ==============================
def main(db_path: Optional[Path] = None) -> None:
    st.set_page_config(page_title="Migraine Journal", layout="wide")

    # inject CSS (robust Windows utf-8 read)
    css_path = ROOT / "ui" / "styles.css"
    if css_path.exists():
        st.markdown(
            f"<style>{css_path.read_text(encoding='utf-8', errors='ignore')}</style>",
            unsafe_allow_html=True,
        )

    records, df, summary = load_history(db_path)

    st.markdown('<div class="app-title">Migraine Journal</div>', unsafe_allow_html=True)
    st.markdown(
        '<div class="app-subtitle">Read-only view of logged episodes. Log and edit from the CLI.</div>',
        unsafe_allow_html=True,
    )

    if not records:
        st.info("No episodes logged yet. Run `python -m analysis.main log` to add one.")
        st.stop()

    tab_dash, tab_episodes, tab_ref = st.tabs(["Dashboard", "Episodes", "Reference"])

    # ========== TAB 1: Dashboard ==========
    with tab_dash:
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Episodes", summary.count)
        m2.metric("Mean intensity", f"{summary.mean_score:.1f}/10")
        m3.metric("Common weekday", summary.most_common_weekday_name or "n/a")
        m4.metric("Common hour", "n/a" if summary.most_common_hour is None else f"{summary.most_common_hour:02d}:00")

        st.plotly_chart(intensity_figure(df), use_container_width=True)
        left, right = st.columns(2)
        left.plotly_chart(hour_figure(df), use_container_width=True)
        right.plotly_chart(weekday_figure(df), use_container_width=True)

        left2, right2 = st.columns(2)
        with left2:
            fig = metric_figure(df, "sleep_hours", "Sleep before episode (h)")
            if fig is not None:
                st.plotly_chart(fig, use_container_width=True)
        with right2:
            fig = metric_figure(df, "pressure", "Pressure (hPa)")
            if fig is not None:
                st.plotly_chart(fig, use_container_width=True)

        st.plotly_chart(symptom_figure(df), use_container_width=True)

        st.markdown("#### Summary")
        st.dataframe(pd.DataFrame(summary_rows(summary)), use_container_width=True, hide_index=True)

    # ========== TAB 2: Episodes ==========
    with tab_episodes:
        labels = [f"{r.timestamp:%Y-%m-%d %H:%M} · {r.score}/10" for r in records]
        choice = st.selectbox("Episode", options=range(len(records)), format_func=lambda i: labels[i])
        st.dataframe(pd.DataFrame(record_rows(records[choice])), use_container_width=True, hide_index=True)

    # ========== TAB 3: Reference ==========
    with tab_ref:
        st.markdown("#### Intensity scale")
        st.dataframe(intensity_scale_table(), use_container_width=True, hide_index=True)
        st.markdown("#### Symptom checklist")
        st.dataframe(symptom_checklist_table(), use_container_width=True, hide_index=True)


if __name__ == "__main__":
    main()
