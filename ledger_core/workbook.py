"""
ledger_core.workbook
Ledger workbook creation, loading, layout and styling (openpyxl).
"""
from __future__ import annotations
import io
import logging
import zipfile
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .cells import as_text
from .config import (
    BRANDING,
    DEFAULT_LEDGER_TITLE,
    FREEZE_AT,
    HEADER_ALIASES,
    HEADER_ROW,
    MAX_SHEET_ROWS,
    MONEY_FORMAT,
    POOL_COLUMNS,
    POOL_SHEET_NAMES,
    SIMPLE_COLUMNS,
    SIMPLE_SHEET_NAMES,
    STARTING_BALANCE_CELL,
    STARTING_BALANCE_FORMAT,
    TITLE_ROW,
)
from .errors import LedgerSizeError, StructuralError
from .models import Category

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetLayout:
    category: Category
    names: Tuple[str, ...]
    columns: Tuple[Tuple[str, str, int], ...]
    money_keys: Tuple[str, ...]
    title_span: int

    @property
    def sheet_name(self) -> str:
        return self.names[0]

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def headers(self) -> list:
        return [h for _k, h, _w in self.columns]

    def col(self, key: str) -> int:
        for i, (k, _h, _w) in enumerate(self.columns, start=1):
            if k == key:
                return i
        raise KeyError(key)

    def letter(self, key: str) -> str:
        return get_column_letter(self.col(key))


POOL_LAYOUT = SheetLayout(
    category=Category.POOL_TRACKED,
    names=POOL_SHEET_NAMES,
    columns=tuple(POOL_COLUMNS),
    money_keys=("requested", "amended", "after_adjustment", "final", "remaining"),
    title_span=8,
)

SIMPLE_LAYOUT = SheetLayout(
    category=Category.SIMPLE,
    names=SIMPLE_SHEET_NAMES,
    columns=tuple(SIMPLE_COLUMNS),
    money_keys=("requested", "after_adjustment"),
    title_span=5,
)

LAYOUTS: Dict[Category, SheetLayout] = {
    Category.POOL_TRACKED: POOL_LAYOUT,
    Category.SIMPLE: SIMPLE_LAYOUT,
}


def layout_for(category: Category) -> SheetLayout:
    return LAYOUTS[category]


# -----------------------------
# Styles
# -----------------------------
def _fill(hex_color: str) -> PatternFill:
    return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

def _box(color: Optional[str] = None, bottom: str = "thin", top: str = "thin") -> Border:
    return Border(
        top=Side(style=top, color=color),
        left=Side(style="thin", color=color),
        bottom=Side(style=bottom, color=color),
        right=Side(style="thin", color=color),
    )

def style_header_row(ws: Worksheet, row: int, ncols: int) -> None:
    ws.row_dimensions[row].height = 22
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.fill = _fill(BRANDING["header_bg"])
        cell.font = Font(bold=True, color=BRANDING["header_font"], size=11)
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = _box()

def style_section_row(ws: Worksheet, row: int) -> None:
    ws.row_dimensions[row].height = 24
    cell = ws.cell(row=row, column=1)
    cell.font = Font(bold=True, size=14, color=BRANDING["header_bg"])
    cell.alignment = Alignment(horizontal="left", vertical="center")
    cell.fill = _fill(BRANDING["section_bg"])

def style_data_row(ws: Worksheet, row: int, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = Font(size=11)
        cell.alignment = Alignment(vertical="center")
        cell.border = _box(BRANDING["grid"])

def style_subtotal_row(ws: Worksheet, row: int, ncols: int) -> None:
    ws.row_dimensions[row].height = 22
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = Font(size=12, bold=True, color="333333")
        cell.alignment = Alignment(horizontal="right", vertical="center")
        cell.fill = _fill(BRANDING["subtotal_bg"])
        cell.border = _box(BRANDING["subtotal_border"], top="medium")

def style_remaining_row(ws: Worksheet, row: int, ncols: int) -> None:
    ws.row_dimensions[row].height = 26
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = Font(size=14, bold=True, color=BRANDING["header_bg"])
        cell.alignment = Alignment(horizontal="right", vertical="center")
        cell.fill = _fill(BRANDING["remaining_bg"])
        cell.border = _box(BRANDING["remaining_border"], bottom="medium")

def apply_money_format(ws: Worksheet, layout: SheetLayout, first_row: int, last_row: int) -> None:
    for key in layout.money_keys:
        c = layout.col(key)
        for r in range(first_row, last_row + 1):
            ws.cell(row=r, column=c).number_format = MONEY_FORMAT


def write_text(ws: Worksheet, row: int, column: int, value: Optional[str]):
    """Store free text as a string; openpyxl would otherwise keep "=..." as a formula."""
    cell = ws.cell(row=row, column=column, value=value)
    if isinstance(value, str):
        cell.data_type = "s"
    return cell


# -----------------------------
# Creation
# -----------------------------
def _add_category_sheet(wb: Workbook, layout: SheetLayout, title: str, first: bool) -> Worksheet:
    ws = wb.active if first else wb.create_sheet()
    ws.title = layout.sheet_name
    for i, (_k, _h, width) in enumerate(layout.columns, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width

    ws.row_dimensions[TITLE_ROW].height = 36
    ws.merge_cells(start_row=TITLE_ROW, start_column=1, end_row=TITLE_ROW, end_column=layout.title_span)
    title_cell = write_text(ws, TITLE_ROW, 1, title)
    title_cell.font = Font(bold=True, size=20, color=BRANDING["header_bg"])
    title_cell.alignment = Alignment(horizontal="left", vertical="center")

    for i, header in enumerate(layout.headers, start=1):
        ws.cell(row=HEADER_ROW, column=i, value=header)
    style_header_row(ws, HEADER_ROW, layout.width)
    ws.freeze_panes = FREEZE_AT
    return ws

def create_ledger(title: str = DEFAULT_LEDGER_TITLE, starting_balance: Optional[float] = None) -> Workbook:
    """
    New ledger: Pool-Tracked sheet (title + starting balance in I1 + headers)
    and Simple sheet (title + headers). No sections yet.
    A None starting balance leaves I1 blank for a reviewer to fill in.
    """
    wb = Workbook()
    pool = _add_category_sheet(wb, POOL_LAYOUT, title, first=True)
    _add_category_sheet(wb, SIMPLE_LAYOUT, f"{title} - Reallocations", first=False)

    budget = pool[STARTING_BALANCE_CELL]
    budget.value = starting_balance
    budget.font = Font(bold=True, size=16, color=BRANDING["title_font"])
    budget.alignment = Alignment(horizontal="right", vertical="center")
    budget.number_format = STARTING_BALANCE_FORMAT

    log.info("Created ledger %r (starting balance %s)", title, starting_balance)
    return wb

def create_ledger_bytes(title: str = DEFAULT_LEDGER_TITLE, starting_balance: Optional[float] = None) -> bytes:
    return save_ledger(create_ledger(title, starting_balance))


# -----------------------------
# Load / save
# -----------------------------
def load_ledger(data: bytes, data_only: bool = False) -> Workbook:
    try:
        return load_workbook(io.BytesIO(data), data_only=data_only)
    except (zipfile.BadZipFile, KeyError, OSError) as e:
        raise StructuralError(f"Uploaded file is not a readable .xlsx workbook: {e}") from e

def save_ledger(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# -----------------------------
# Lookup / validation
# -----------------------------
def find_category_sheet(wb: Workbook, category: Category) -> Optional[Worksheet]:
    wanted = [n.lower() for n in layout_for(category).names]
    by_name = {ws.title.strip().lower(): ws for ws in wb.worksheets}
    for name in wanted:
        if name in by_name:
            return by_name[name]
    return None

def _header_matches(value, key: str, header: str) -> bool:
    text = as_text(value).lower()
    accepted = [h.lower() for h in HEADER_ALIASES.get(key, ())] + [header.lower()]
    return text in accepted

def require_header(ws: Worksheet, layout: SheetLayout) -> None:
    """
    The writer appends below a fixed column layout; a sheet whose header row is
    missing or shuffled is rejected rather than guessed at.
    """
    for key in ("organization", "requested", "status"):
        c = layout.col(key)
        header = layout.columns[c - 1][1]
        if not _header_matches(ws.cell(row=HEADER_ROW, column=c).value, key, header):
            raise StructuralError(
                f"Sheet {ws.title!r} has no recognizable header row: expected {header!r} "
                f"in column {get_column_letter(c)} of row {HEADER_ROW}"
            )

def last_used_row(ws: Worksheet) -> int:
    for r in range(ws.max_row, 0, -1):
        if any(cell.value not in (None, "") for cell in ws[r]):
            return r
    return 0

def check_sheet_size(ws: Worksheet) -> None:
    if ws.max_row > MAX_SHEET_ROWS:
        raise LedgerSizeError(
            f"Sheet {ws.title!r} has {ws.max_row} rows; the ledger accepts at most {MAX_SHEET_ROWS}"
        )
