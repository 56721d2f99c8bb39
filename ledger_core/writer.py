"""
ledger_core.writer
Appends one dated section per category to a ledger workbook.

Pool-Tracked (AFR) sections end with a subtotal row and a remaining-budget row.
The remaining-budget formula points at the previous section's remaining-budget
cell (or the starting balance in I1), so the chain survives any number of merges
and recalculates when reviewers fill in the blanks between sessions.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from .cells import match_section_start
from .config import (
    DEFAULT_LEDGER_TITLE,
    HEADER_ROW,
    MAX_BATCH_ROWS,
    REMAINING_LABEL,
    SECTION_PREFIX,
    STARTING_BALANCE_CELL,
    STATUS_APPROVED,
    STATUS_CHOICES,
    SUBTOTAL_LABEL,
)
from .errors import LedgerError, LedgerSizeError, StructuralError
from .formulas import (
    amended_formula,
    find_last_remaining_cell,
    pool_final_formula,
    remaining_formula,
    subtotal_formula,
)
from .models import Category, LifecycleState, MergeResult, RequestRecord
from .parsing import format_meeting_date, parse_meeting_date, section_date_to_iso
from .workbook import (
    SheetLayout,
    apply_money_format,
    check_sheet_size,
    create_ledger,
    find_category_sheet,
    last_used_row,
    layout_for,
    load_ledger,
    require_header,
    save_ledger,
    style_data_row,
    style_remaining_row,
    style_section_row,
    style_subtotal_row,
    write_text,
)

log = logging.getLogger(__name__)

DateLike = Union[str, date]

# Cells filled from export text; never interpreted as formulas
TEXT_KEYS = frozenset({"note", "organization", "account", "name_of_org"})


def section_heading(date_text: str, sequence: int) -> str:
    if sequence <= 1:
        return f"{SECTION_PREFIX} {date_text}"
    return f"{SECTION_PREFIX} {date_text} #{sequence}"


def partition_by_category(batch: Sequence[RequestRecord]) -> Dict[Category, List[RequestRecord]]:
    parts: Dict[Category, List[RequestRecord]] = {Category.POOL_TRACKED: [], Category.SIMPLE: []}
    for r in batch:
        parts[Category(r.category)].append(r)
    return parts


def _missing_account(value: str) -> bool:
    v = (value or "").strip()
    return not v or v == "#"


class LedgerWriter:
    """
    Single-owner builder around one workbook for the length of a merge call.
    Warnings accumulate on .warnings instead of being raised.
    """

    def __init__(self, wb: Workbook):
        self.wb = wb
        self.warnings: List[str] = []

    def merge(self, batch: Sequence[RequestRecord], meeting_date: DateLike) -> List[str]:
        if len(batch) > MAX_BATCH_ROWS:
            raise LedgerSizeError(f"Batch has {len(batch)} requests; at most {MAX_BATCH_ROWS} can be merged at once")

        d = parse_meeting_date(meeting_date)
        if d is None:
            raise LedgerError(f"Meeting date not recognized: {meeting_date!r}")
        date_text = format_meeting_date(d)

        parts = partition_by_category(batch)
        sheets = self._locate_sheets(parts)
        if not batch:
            self.warnings.append("No requests to merge; the ledger was left unchanged.")
            return []

        sequence = self._next_sequence(d, sheets)
        key = date_text if sequence <= 1 else f"{date_text} #{sequence}"
        for category in (Category.POOL_TRACKED, Category.SIMPLE):
            records = parts[category]
            if not records:
                continue
            self._append_section(sheets[category], layout_for(category), records, date_text, sequence)
        return [key]

    # ---- structure ----

    def _locate_sheets(self, parts: Dict[Category, List[RequestRecord]]) -> Dict[Category, Optional[Worksheet]]:
        sheets = {c: find_category_sheet(self.wb, c) for c in (Category.POOL_TRACKED, Category.SIMPLE)}
        if all(ws is None for ws in sheets.values()):
            names = ", ".join(repr(ws.title) for ws in self.wb.worksheets)
            raise StructuralError(
                f"Workbook has no AFR or Reallocation sheet (found: {names or 'none'}); "
                "upload a ledger created by this tool"
            )
        for category, records in parts.items():
            ws = sheets[category]
            if not records:
                continue
            if ws is None:
                raise StructuralError(
                    f"Workbook has no {category.value} sheet but the batch has "
                    f"{len(records)} {category.value} request(s)"
                )
            require_header(ws, layout_for(category))
            check_sheet_size(ws)
        return sheets

    def _next_sequence(self, d: date, sheets: Dict[Category, Optional[Worksheet]]) -> int:
        """1 for the first section on a date, 2 for the next one, and so on across both sheets."""
        highest = 0
        for ws in sheets.values():
            if ws is None:
                continue
            for (value,) in ws.iter_rows(min_col=1, max_col=1, values_only=True):
                start = match_section_start(value)
                if start and section_date_to_iso(start.date, default_year=d.year) == d.isoformat():
                    highest = max(highest, start.sequence)
        return highest + 1

    # ---- rows ----

    def _append_section(
        self,
        ws: Worksheet,
        layout: SheetLayout,
        records: List[RequestRecord],
        date_text: str,
        sequence: int,
    ) -> None:
        previous_remaining = None
        if layout.category == Category.POOL_TRACKED:
            previous_remaining = find_last_remaining_cell(ws) or STARTING_BALANCE_CELL

        # blank separator row, then the section marker
        marker_row = max(last_used_row(ws), HEADER_ROW) + 2
        heading = section_heading(date_text, sequence)
        ws.cell(row=marker_row, column=1, value=heading)
        ws.merge_cells(start_row=marker_row, start_column=1, end_row=marker_row, end_column=layout.width)
        style_section_row(ws, marker_row)

        first = marker_row + 1
        for i, record in enumerate(records):
            row = first + i
            self._check_record(record, heading, i + 1)
            self._write_row(ws, layout, row, record, date_text if i == 0 else None)
            style_data_row(ws, row, layout.width)
        last = first + len(records) - 1

        status_col = layout.letter("status")
        dv = DataValidation(
            type="list",
            formula1=STATUS_CHOICES,
            allow_blank=True,
            showErrorMessage=True,
            errorTitle="Invalid Status",
            error="Please select either Approved or Denied",
        )
        ws.add_data_validation(dv)
        dv.add(f"{status_col}{first}:{status_col}{last}")

        end = last
        if layout.category == Category.POOL_TRACKED:
            end = self._append_balance_rows(ws, layout, first, last, previous_remaining)
        apply_money_format(ws, layout, first, end)

        log.info(
            "%s: wrote %d %s row(s) at %s!%d-%d",
            heading, len(records), layout.category.value, ws.title, first, last,
        )

    def _write_row(
        self,
        ws: Worksheet,
        layout: SheetLayout,
        row: int,
        record: RequestRecord,
        date_text: Optional[str],
    ) -> None:
        name = record.label
        amount = float(record.requested_amount)
        pre_approved = record.is_pre_approved

        values = {
            "meeting_date": date_text,
            "note": record.note or None,
            "organization": name,
            "requested": amount,
            "after_adjustment": amount if pre_approved else None,
            "status": STATUS_APPROVED if pre_approved else None,
            "account": record.account_reference or None,
        }
        if layout.category == Category.POOL_TRACKED:
            values["amended"] = amended_formula(row)
            values["final"] = amount if pre_approved else pool_final_formula(row)
            values["name_of_org"] = name

        for key, value in values.items():
            if key in TEXT_KEYS:
                write_text(ws, row, layout.col(key), value)
            else:
                ws.cell(row=row, column=layout.col(key), value=value)

    def _append_balance_rows(
        self,
        ws: Worksheet,
        layout: SheetLayout,
        first: int,
        last: int,
        previous_remaining: str,
    ) -> int:
        label_col = layout.col("status")

        subtotal_row = last + 1
        ws.cell(row=subtotal_row, column=label_col, value=SUBTOTAL_LABEL)
        ws.cell(row=subtotal_row, column=layout.col("final"), value=subtotal_formula(first, last))
        style_subtotal_row(ws, subtotal_row, layout.width)

        remaining_row = last + 2
        ws.cell(row=remaining_row, column=label_col, value=REMAINING_LABEL)
        ws.cell(
            row=remaining_row,
            column=layout.col("remaining"),
            value=remaining_formula(previous_remaining, subtotal_row),
        )
        style_remaining_row(ws, remaining_row, layout.width)
        log.debug("Remaining budget at row %d chains from %s", remaining_row, previous_remaining)
        return remaining_row

    def _check_record(self, record: RequestRecord, heading: str, position: int) -> None:
        where = f"{heading}, {record.category.value} request {position} ({record.label})"
        if float(record.requested_amount) == 0:
            self.warnings.append(f"{where}: amount is $0 or missing.")
        if _missing_account(record.account_reference):
            self.warnings.append(f"{where}: account number is missing or invalid.")
        if record.lifecycle_state == LifecycleState.DENIED:
            self.warnings.append(f"{where}: request was already denied upstream; written with a blank status.")


def merge_ledger(
    existing: Optional[bytes],
    batch: Sequence[RequestRecord],
    meeting_date: DateLike,
    title: str = DEFAULT_LEDGER_TITLE,
) -> MergeResult:
    """
    Load (or create) a ledger, append this batch's sections, and return the new
    workbook bytes plus warnings. Nothing is returned when a StructuralError is raised.
    """
    wb = load_ledger(existing) if existing is not None else create_ledger(title)
    writer = LedgerWriter(wb)
    keys = writer.merge(batch, meeting_date)
    return MergeResult(document=save_ledger(wb), warnings=writer.warnings, sections_written=keys)
