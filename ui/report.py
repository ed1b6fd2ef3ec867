# ui/report.py
from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Sequence
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.pdfgen import canvas
from reportlab.lib.units import cm

from analysis.models import MigraineRecord
from analysis.reference import intensity_colour, intensity_description, summary_rows
from analysis.stats import HistorySummary

# intensity colour band → PDF colour
PDF_COLOURS = {
    "green": colors.green,
    "yellow": colors.gold,
    "orange": colors.orange,
    "red": colors.red,
}


def export_summary_pdf(
    dest: Path,
    summary: HistorySummary,
    records: Sequence[MigraineRecord] = (),
    recent: int = 15,
) -> Path:
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(dest), pagesize=A4)
    W, H = A4
    y = H - 2*cm

    def line(txt, size=12, color=colors.black, dy=14):
        nonlocal y
        if y < 2*cm:
            c.showPage()
            y = H - 2*cm
        c.setFont("Helvetica", size)
        c.setFillColor(color)
        c.drawString(2*cm, y, txt)
        y -= dy

    line("Migraine Journal: History Summary", 14)
    line(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}", 9, colors.grey)
    y -= 6

    line("Summary:", 12, dy=12)
    for row in summary_rows(summary):
        line(f"  - {row['field']}: {row['value']}", 10)

    if records:
        y -= 6
        line(f"Most recent episodes (first {recent}):", 12, dy=12)
        newest = sorted(records, key=lambda r: r.timestamp, reverse=True)[:recent]
        for r in newest:
            colour = PDF_COLOURS[intensity_colour(r.intensity)]
            weather = r.weather_condition or "-"
            line(
                f"  {r.timestamp.strftime('%Y-%m-%d %H:%M')}: {r.score}/10 "
                f"{intensity_description(r.intensity)}  [{weather}]",
                9, colour, dy=11,
            )
    else:
        line("No episodes logged.", 12)

    c.showPage()
    c.save()
    return dest


__all__ = ["export_summary_pdf"]
