"""
ledger_core.reader
Reads a ledger workbook back into dated sections.

Formula cells are taken at their last computed value (the workbook is opened
with data_only=True). A file that was written by the merge step and never
opened in a spreadsheet application has no cached results; those cells read as
empty and fall back to zero.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .cells import (
    DataRow,
    SectionStart,
    Skip,
    as_number,
    as_optional_number,
    as_status,
    as_text,
    classify_row,
)
from .config import NOTE_TAG_PATTERN, STATUS_APPROVED, STATUS_DENIED
from .errors import LedgerError, StructuralError
from .models import (
    PRE_SESSION_ROUTES,
    Category,
    DecidedRow,
    LedgerRow,
    ParseResult,
    RoutingClass,
    SectionRows,
    WeekSummary,
    routing_from_text,
)
from .parsing import section_date_to_iso
from .workbook import SheetLayout, check_sheet_size, find_category_sheet, last_used_row, layout_for, load_ledger

log = logging.getLogger(__name__)

Document = Union[bytes, Workbook]


@dataclass
class _Section:
    start: SectionStart
    rows: Dict[Category, List[LedgerRow]] = field(
        default_factory=lambda: {Category.POOL_TRACKED: [], Category.SIMPLE: []}
    )

    @property
    def all_rows(self) -> List[LedgerRow]:
        return self.rows[Category.POOL_TRACKED] + self.rows[Category.SIMPLE]


def parse_note(note: str) -> Tuple[RoutingClass, str]:
    """
    "Auto-Cleared: Snacks" -> (AUTO_CLEARED, "Snacks").
    Anything without a known pre-session tag is a session-review description.
    """
    text = (note or "").strip()
    m = NOTE_TAG_PATTERN.match(text)
    if m:
        route = routing_from_text(m.group(1))
        if route in PRE_SESSION_ROUTES:
            return route, m.group(2).strip()
    return RoutingClass.SESSION_REVIEW, text


def decode_row(ws: Worksheet, row: int, layout: SheetLayout) -> LedgerRow:
    def cell(key: str):
        return ws.cell(row=row, column=layout.col(key)).value

    after = as_optional_number(cell("after_adjustment"))
    if layout.category == Category.POOL_TRACKED:
        amended = as_optional_number(cell("amended"))
        final = as_number(cell("final"))
    else:
        amended = None
        final = after or 0.0

    return LedgerRow(
        display_name=as_text(cell("organization")),
        category=layout.category,
        requested_amount=as_number(cell("requested")),
        after_adjustment=after,
        decision_status=as_status(cell("status")),
        amended_amount=amended,
        final_amount=final,
        note=as_text(cell("note")),
        account_reference=as_text(cell("account")),
        sheet_row=row,
    )


def scan_sheet(ws: Worksheet, layout: SheetLayout, warnings: List[str]) -> List[Tuple[SectionStart, List[LedgerRow]]]:
    """Top-to-bottom scan; each marker opens a section that runs until the next marker."""
    check_sheet_size(ws)
    found: List[Tuple[SectionStart, List[LedgerRow]]] = []
    current: Optional[List[LedgerRow]] = None
    stray = 0
    status_col = layout.col("status")
    org_col = layout.col("organization")

    for r in range(1, last_used_row(ws) + 1):
        kind = classify_row(
            ws.cell(row=r, column=1).value,
            [ws.cell(row=r, column=status_col).value],
            ws.cell(row=r, column=org_col).value,
        )
        if isinstance(kind, SectionStart):
            current = []
            found.append((kind, current))
            continue
        if isinstance(kind, Skip):
            continue
        if isinstance(kind, DataRow):
            if current is None:
                stray += 1
                continue
            current.append(decode_row(ws, r, layout))

    if stray:
        warnings.append(f"{ws.title}: {stray} row(s) above the first 'Week of' heading were ignored.")
    log.debug("%s: %d section(s)", ws.title, len(found))
    return found


def _open(document: Document) -> Workbook:
    if isinstance(document, Workbook):
        return document
    return load_ledger(document, data_only=True)


def _collect(document: Document) -> Tuple[List[_Section], List[str]]:
    wb = _open(document)
    warnings: List[str] = []
    sheets = {c: find_category_sheet(wb, c) for c in (Category.POOL_TRACKED, Category.SIMPLE)}
    if all(ws is None for ws in sheets.values()):
        raise StructuralError("Could not find an AFR or Reallocation sheet in the workbook.")

    sections: Dict[str, _Section] = {}
    for category, ws in sheets.items():
        if ws is None:
            warnings.append(f"Could not find the {category.value} sheet; only the other sheet was read.")
            continue
        for start, rows in scan_sheet(ws, layout_for(category), warnings):
            section = sections.setdefault(start.key, _Section(start=start))
            section.rows[category].extend(rows)

    if not sections:
        raise StructuralError(
            "No sections found in the workbook. Ensure sections are marked with 'Week of <date>' headings."
        )

    ordered = sorted(
        sections.values(),
        key=lambda s: (section_date_to_iso(s.start.date), s.start.sequence),
        reverse=True,
    )
    return ordered, warnings


def summarize(section: _Section) -> WeekSummary:
    rows = section.all_rows
    return WeekSummary(
        key=section.start.key,
        date=section.start.date,
        date_iso=section_date_to_iso(section.start.date),
        sequence=section.start.sequence,
        request_count=len(rows),
        approved_count=sum(1 for r in rows if r.decision_status == STATUS_APPROVED),
        denied_count=sum(1 for r in rows if r.decision_status == STATUS_DENIED),
        undecided_count=sum(1 for r in rows if not r.decision_status),
        pool_count=len(section.rows[Category.POOL_TRACKED]),
        simple_count=len(section.rows[Category.SIMPLE]),
    )


def parse_ledger(document: Document) -> ParseResult:
    sections, warnings = _collect(document)
    summaries = [summarize(s) for s in sections]
    for s in summaries:
        if s.undecided_count:
            warnings.append(f"Week of {s.key}: {s.undecided_count} request(s) have no status set.")
    log.info("Parsed %d section(s) with %d warning(s)", len(summaries), len(warnings))
    return ParseResult(sections=summaries, warnings=warnings)


def _find(sections: List[_Section], section_key: str) -> _Section:
    wanted = (section_key or "").strip()
    for s in sections:
        if s.start.key == wanted:
            return s
    for s in sections:
        if s.start.sequence == 1 and wanted in (s.start.date, section_date_to_iso(s.start.date)):
            return s
    available = ", ".join(s.start.key for s in sections)
    raise LedgerError(f"Section {wanted!r} not found in the workbook (available: {available})", section=wanted)


def rows_for_section(document: Document, section_key: str) -> List[LedgerRow]:
    """Every decoded row of one section, Pool-Tracked rows first, in sheet order."""
    sections, _warnings = _collect(document)
    return _find(sections, section_key).all_rows


def to_decided(row: LedgerRow) -> DecidedRow:
    routing, description = parse_note(row.note)
    final = (row.final_amount or row.after_adjustment or 0.0) if row.decision_status == STATUS_APPROVED else 0.0
    return DecidedRow(
        display_name=row.display_name,
        category=row.category,
        requested_amount=row.requested_amount,
        final_amount=final,
        status=row.decision_status,
        routing_class=routing,
        description=description,
        account_reference=row.account_reference,
    )


def decided_rows_for_section(document: Document, section_key: str) -> SectionRows:
    """
    Rows ready for the decision deck. Rows without a status are left out and
    counted in excluded_count so the caller can show the difference.
    """
    rows = rows_for_section(document, section_key)
    decided = [to_decided(r) for r in rows if r.is_decided]
    excluded = len(rows) - len(decided)
    warnings = []
    if excluded:
        warnings.append(f"Week of {section_key}: {excluded} request(s) without a status were left out.")
    return SectionRows(rows=decided, excluded_count=excluded, warnings=warnings)
