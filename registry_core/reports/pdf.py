# registry_core/reports/pdf.py
from __future__ import annotations

import io
from typing import Any, Dict

from django.utils import timezone
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

BODY_FONT = ("Helvetica", 8)
HEAD_FONT = ("Helvetica-Bold", 8)
ROW_HEIGHT = 0.5 * cm
MARGIN = 2 * cm


def _fit(text: str, width: float, font: tuple) -> str:
    """Clip text to the column width, marking the cut with '...'."""
    if stringWidth(text, *font) <= width:
        return text
    while text and stringWidth(text + "...", *font) > width:
        text = text[:-1]
    return text + "..."


def render_report_pdf(report: Dict[str, Any], *, site_name: str) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    columns = report["columns"]
    col_width = (width - 2 * MARGIN) / len(columns)
    page = 1

    def footer():
        c.setFont("Helvetica-Oblique", 8)
        c.drawCentredString(width / 2, 1.2 * cm, f"{site_name} - Page {page}")

    def header_row(y: float) -> float:
        c.setFont(*HEAD_FONT)
        for i, label in enumerate(columns):
            c.drawString(MARGIN + i * col_width, y, _fit(label, col_width - 4, HEAD_FONT))
        c.line(MARGIN, y - 0.15 * cm, width - MARGIN, y - 0.15 * cm)
        return y - ROW_HEIGHT

    y = height - 2 * cm
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(width / 2, y, site_name)
    y -= 0.9 * cm
    c.setFont("Helvetica", 13)
    c.drawCentredString(width / 2, y, report["title"])
    y -= 0.7 * cm
    c.setFont("Helvetica", 9)
    c.drawCentredString(width / 2, y, f"Generated: {timezone.localtime().strftime('%b %d, %Y %H:%M')}")
    y -= 0.5 * cm
    c.drawCentredString(
        width / 2,
        y,
        f"Period: {report['start'].strftime('%b %d, %Y')} to {report['end'].strftime('%b %d, %Y')}",
    )
    y -= 1.0 * cm

    y = header_row(y)
    if not report["rows"]:
        c.setFont(*BODY_FONT)
        c.drawString(MARGIN, y, "No records for this period.")

    for row in report["rows"]:
        if y < MARGIN:
            footer()
            c.showPage()
            page += 1
            y = header_row(height - 2 * cm)
        c.setFont(*BODY_FONT)
        for i, value in enumerate(row):
            text = "" if value is None else str(value)
            c.drawString(MARGIN + i * col_width, y, _fit(text, col_width - 4, BODY_FONT))
        y -= ROW_HEIGHT

    footer()
    c.showPage()
    c.save()
    return buffer.getvalue()
