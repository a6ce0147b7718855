"""
services/schedule_pdf_renderer.py

Printable monthly hearing schedule for a district, built with ReportLab
platypus from the calendar_for_month projection.
"""

from __future__ import annotations

import io
from datetime import date, datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from court_scheduling.services.calendar_view import HearingSummary

EMPTY_MESSAGE = "No scheduled hearings found for the selected period."

_COLUMNS = ["Time", "Case Number", "Case Type", "Client", "Lawyer", "Courtroom"]
_COL_WIDTHS = [0.95 * inch, 1.1 * inch, 1.05 * inch, 1.3 * inch, 1.3 * inch, 1.0 * inch]


def render_schedule_pdf(
    district:     Optional[str],
    year:         int,
    month:        int,
    hearings:     dict[str, list[HearingSummary]],
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    One section per hearing date (ascending), one table row per hearing,
    and a total count at the end. An empty month still yields a valid
    single-page document carrying EMPTY_MESSAGE.
    """
    generated_at = generated_at or datetime.utcnow()

    buf = io.BytesIO()
    doc_pdf = SimpleDocTemplate(
        buf, pagesize=A4,
        rightMargin=0.6 * inch, leftMargin=0.6 * inch,
        topMargin=0.75 * inch, bottomMargin=0.75 * inch,
        title="Court Hearing Schedules",
    )

    styles = getSampleStyleSheet()

    def S(name: str, **kw):
        return ParagraphStyle(name, parent=styles["Normal"], **kw)

    title_st = S("T", fontSize=16, spaceAfter=6, alignment=TA_CENTER,
                 textColor=colors.HexColor("#1e3a5f"), fontName="Helvetica-Bold")
    meta_st = S("Meta", fontSize=9, leading=13, alignment=TA_CENTER,
                textColor=colors.HexColor("#374151"))
    date_st = S("Date", fontSize=11, spaceBefore=14, spaceAfter=6,
                textColor=colors.HexColor("#1e40af"), fontName="Helvetica-Bold")
    cell_st = S("Cell", fontSize=8, leading=10)
    total_st = S("Total", fontSize=10, spaceBefore=14, fontName="Helvetica-Bold")
    empty_st = S("Empty", fontSize=11, spaceBefore=30, alignment=TA_CENTER,
                 textColor=colors.HexColor("#6b7280"))

    period = date(year, month, 1).strftime("%B %Y")
    district_label = "All Districts" if not district or district == "all" else district

    story = [
        Paragraph("COURT HEARING SCHEDULES", title_st),
        Paragraph(f"District: {escape(district_label)}", meta_st),
        Paragraph(f"Period: {period}", meta_st),
        Paragraph(f"Generated: {generated_at.strftime('%d %B %Y, %I:%M %p')}", meta_st),
        Spacer(1, 8),
        HRFlowable(width="100%", thickness=1, color=colors.HexColor("#e5e7eb")),
    ]

    total = sum(len(rows) for rows in hearings.values())
    if total == 0:
        story.append(Paragraph(EMPTY_MESSAGE, empty_st))
        doc_pdf.build(story)
        return buf.getvalue()

    for day in sorted(hearings):
        rows = hearings[day]
        if not rows:
            continue
        heading = date.fromisoformat(day).strftime("%A, %d %B %Y")
        story.append(Paragraph(heading, date_st))

        data = [_COLUMNS]
        for h in sorted(rows, key=lambda r: r.start_time):
            data.append([
                f"{h.start_time} - {h.end_time}",
                Paragraph(escape(h.case_number), cell_st),
                Paragraph(escape(h.case_type), cell_st),
                Paragraph(escape(h.client_name), cell_st),
                Paragraph(escape(h.lawyer_name), cell_st),
                Paragraph(escape(h.courtroom), cell_st),
            ])
        story.append(_table(data))

    story.append(Paragraph(f"Total Hearings: {total}", total_st))
    doc_pdf.build(story)
    return buf.getvalue()


def _table(data: list) -> Table:
    t = Table(data, colWidths=_COL_WIDTHS, repeatRows=1)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1e40af")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#e5e7eb")),
        ("PADDING", (0, 0), (-1, -1), 4),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f8fafc")]),
    ]))
    return t
