"""
ledger_core.formulas
Formula text for ledger cells, the remaining-balance chain, and a small
evaluator for the formulas this package writes.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from openpyxl.utils.cell import coordinate_from_string
from openpyxl.worksheet.worksheet import Worksheet

from .cells import as_number, as_text, is_formula, match_section_start
from .config import FIRST_DATA_ROW, STARTING_BALANCE_CELL
from .errors import LedgerError
from .workbook import POOL_LAYOUT, last_used_row

_P = POOL_LAYOUT


def amended_formula(row: int) -> str:
    return f"={_P.letter('requested')}{row}-{_P.letter('after_adjustment')}{row}"


def pool_final_formula(row: int) -> str:
    status = f"{_P.letter('status')}{row}"
    after = f"{_P.letter('after_adjustment')}{row}"
    return f'=IF({status}="Approved",{after},0)'


def subtotal_formula(first_row: int, last_row: int) -> str:
    col = _P.letter("final")
    return f"=SUM({col}{first_row}:{col}{last_row})"


def remaining_formula(previous_ref: str, subtotal_row: int) -> str:
    return f"={previous_ref}-{_P.letter('final')}{subtotal_row}"


def remaining_ref(row: int) -> str:
    return f"{_P.letter('remaining')}{row}"


def _label(ws: Worksheet, row: int) -> str:
    return as_text(ws.cell(row=row, column=_P.col("status")).value).lower()


def is_subtotal_row(ws: Worksheet, row: int) -> bool:
    return "subtotal" in _label(ws, row)


def is_remaining_row(ws: Worksheet, row: int) -> bool:
    return "remaining budget" in _label(ws, row)


def find_last_remaining_cell(ws: Worksheet) -> Optional[str]:
    """Remaining Budget cell of the last section written so far, e.g. "I15"."""
    last = None
    for r in range(FIRST_DATA_ROW, last_used_row(ws) + 1):
        if is_remaining_row(ws, r):
            last = remaining_ref(r)
    return last


def _norm(formula: str) -> str:
    return formula.replace(" ", "").replace("$", "").upper()


def check_balance_chain(ws: Worksheet) -> List[str]:
    """
    Walk the Pool-Tracked sheet and report every remaining-balance row that does
    not read "=<previous remaining>-<own subtotal>".
    """
    problems: List[str] = []
    previous = STARTING_BALANCE_CELL
    subtotal_row: Optional[int] = None
    section = "?"
    for r in range(FIRST_DATA_ROW, last_used_row(ws) + 1):
        start = match_section_start(ws.cell(row=r, column=1).value)
        if start is not None:
            section = start.key
            subtotal_row = None
            continue
        if is_subtotal_row(ws, r):
            subtotal_row = r
            continue
        if not is_remaining_row(ws, r):
            continue

        value = ws.cell(row=r, column=_P.col("remaining")).value
        if subtotal_row is None:
            problems.append(f"Week of {section}: remaining budget at row {r} has no subtotal row above it")
        elif not is_formula(value):
            problems.append(
                f"Week of {section}: remaining budget at row {r} is a literal ({as_text(value) or 'blank'}), not a formula"
            )
        else:
            expected = remaining_formula(previous, subtotal_row)
            if _norm(value) != _norm(expected):
                problems.append(
                    f"Week of {section}: remaining budget at row {r} reads {value} but should be {expected}"
                )
        previous = remaining_ref(r)
    return problems


# -----------------------------
# Projection
# -----------------------------
_REF = r"([A-Z]{1,3}\d+)"
_RE_DIFF = re.compile(rf"^={_REF}-{_REF}$")
_RE_IF = re.compile(rf'^=IF\({_REF}="([^"]*)",{_REF},(-?[0-9.]+)\)$')
_RE_SUM = re.compile(r"^=SUM\(([A-Z]{1,3})(\d+):([A-Z]{1,3})(\d+)\)$")


@dataclass
class BalancePoint:
    section: str
    subtotal_row: int
    remaining_row: int
    subtotal: float
    remaining: float


class _Evaluator:
    """Evaluates the handful of formula shapes the ledger writer emits."""

    def __init__(self, ws: Worksheet):
        self.ws = ws
        self.cache: Dict[str, float] = {}

    def value(self, ref: str) -> float:
        ref = ref.replace("$", "").upper()
        if ref in self.cache:
            return self.cache[ref]
        self.cache[ref] = 0.0  # cycle guard
        raw = self.ws[ref].value
        result = self._eval(raw, ref) if is_formula(raw) else as_number(raw)
        self.cache[ref] = result
        return result

    def _eval(self, formula: str, ref: str) -> float:
        f = _norm(formula)
        m = _RE_DIFF.match(f)
        if m:
            return self.value(m.group(1)) - self.value(m.group(2))
        m = _RE_IF.match(f)
        if m:
            test = as_text(self.ws[m.group(1)].value).upper()
            return self.value(m.group(3)) if test == m.group(2) else float(m.group(4))
        m = _RE_SUM.match(f)
        if m:
            col_a, row_a, col_b, row_b = m.groups()
            if col_a != col_b:
                raise LedgerError(f"Unsupported multi-column SUM {formula!r} in {ref}")
            return sum(self.value(f"{col_a}{r}") for r in range(int(row_a), int(row_b) + 1))
        _col, row = coordinate_from_string(ref)
        raise LedgerError(f"Unsupported formula {formula!r} in {ref}", row=row)


def project_balances(ws: Worksheet) -> List[BalancePoint]:
    """Subtotal and remaining balance per Pool-Tracked section, computed from the sheet's own formulas."""
    ev = _Evaluator(ws)
    points: List[BalancePoint] = []
    section = "?"
    subtotal_row = None
    final_col = _P.letter("final")
    remaining_col = _P.letter("remaining")
    for r in range(FIRST_DATA_ROW, last_used_row(ws) + 1):
        start = match_section_start(ws.cell(row=r, column=1).value)
        if start is not None:
            section = start.key
        elif is_subtotal_row(ws, r):
            subtotal_row = r
        elif is_remaining_row(ws, r) and subtotal_row is not None:
            points.append(BalancePoint(
                section=section,
                subtotal_row=subtotal_row,
                remaining_row=r,
                subtotal=ev.value(f"{final_col}{subtotal_row}"),
                remaining=ev.value(f"{remaining_col}{r}"),
            ))
            subtotal_row = None
    return points
