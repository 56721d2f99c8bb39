"""
ledger_core.deck
Decision deck PDF (reportlab): a title page, one page per decided request,
and a closing totals page.
"""
from __future__ import annotations
import io
import logging
from typing import List, Sequence
from xml.sax.saxutils import escape

from .config import STATUS_APPROVED, STATUS_DENIED
from .models import Category, DecidedRow
from .utils import fmt_money, timestamp_line

log = logging.getLogger(__name__)


def require_reportlab():
    try:
        from reportlab.lib.pagesizes import letter, landscape  # noqa
        from reportlab.lib.units import inch  # noqa
        from reportlab.lib import colors  # noqa
        from reportlab.lib.styles import getSampleStyleSheet  # noqa
        from reportlab.platypus import (  # noqa
            SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak
        )
        return (landscape(letter), inch, colors, getSampleStyleSheet,
                SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak)
    except ImportError:
        raise SystemExit("Missing dependency: reportlab\nInstall with: pip3 install reportlab\n")


def _style_fact_table(TableStyle, colors):
    return TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 14),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.whitesmoke, colors.white]),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ])


def _style_totals_table(TableStyle, colors):
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ])


def _status_line(row: DecidedRow) -> str:
    if row.status == STATUS_APPROVED and row.was_amended:
        return f"Approved (amended from {fmt_money(row.requested_amount)})"
    return row.status or "No status"


def compile_deck(rows: Sequence[DecidedRow], section_label: str) -> bytes:
    (pagesize, inch, colors, getSampleStyleSheet,
     SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak) = require_reportlab()

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"Funding Decisions - Week of {section_label}",
    )
    styles = getSampleStyleSheet()

    story: List = []
    story.append(Spacer(1, 1.5 * inch))
    story.append(Paragraph("Funding Decisions", styles["Title"]))
    story.append(Paragraph(f"Week of {escape(section_label)}", styles["Heading2"]))
    story.append(Spacer(1, 0.12 * inch))
    story.append(Paragraph(timestamp_line("Generated"), styles["Normal"]))
    story.append(Paragraph(f"{len(rows)} decided request(s)", styles["Normal"]))

    for row in rows:
        story.append(PageBreak())
        story.append(Paragraph(escape(row.display_name), styles["Title"]))
        story.append(Spacer(1, 0.12 * inch))
        facts = [
            ["Request type", row.category.value],
            ["Requested", fmt_money(row.requested_amount)],
            ["Final amount", fmt_money(row.final_amount)],
            ["Decision", _status_line(row)],
            ["Route", row.routing_class.value],
        ]
        if row.account_reference:
            facts.append(["Account", row.account_reference])
        tbl = Table(facts, colWidths=[2.2 * inch, 6.5 * inch])
        tbl.setStyle(_style_fact_table(TableStyle, colors))
        story.append(tbl)
        if row.description:
            story.append(Spacer(1, 0.2 * inch))
            story.append(Paragraph("<b>Details</b>", styles["Heading3"]))
            story.append(Paragraph(escape(row.description).replace("\n", "<br/>"), styles["Normal"]))

    story.append(PageBreak())
    story.append(Paragraph("Totals", styles["Title"]))
    story.append(Spacer(1, 0.12 * inch))
    table_data = [["Type", "Approved", "Denied", "Requested", "Granted"]]
    for category in (Category.POOL_TRACKED, Category.SIMPLE):
        part = [r for r in rows if r.category == category]
        table_data.append([
            category.value,
            str(sum(1 for r in part if r.status == STATUS_APPROVED)),
            str(sum(1 for r in part if r.status == STATUS_DENIED)),
            fmt_money(sum(r.requested_amount for r in part)),
            fmt_money(sum(r.final_amount for r in part)),
        ])
    table_data.append([
        "TOTAL",
        str(sum(1 for r in rows if r.status == STATUS_APPROVED)),
        str(sum(1 for r in rows if r.status == STATUS_DENIED)),
        fmt_money(sum(r.requested_amount for r in rows)),
        fmt_money(sum(r.final_amount for r in rows)),
    ])
    tbl = Table(table_data, colWidths=[2.0 * inch, 1.2 * inch, 1.2 * inch, 1.8 * inch, 1.8 * inch], repeatRows=1)
    tbl.setStyle(_style_totals_table(TableStyle, colors))
    story.append(tbl)

    doc.build(story)
    log.info("Deck for Week of %s: %d page(s) of requests", section_label, len(rows))
    return buf.getvalue()
