"""
ledger_core.cells
Typed access to worksheet cell values and row classification.

openpyxl hands back str/int/float/datetime/None, and formula strings ("=D3-F3")
when a workbook is loaded without data_only. Everything the reader and writer
look at goes through the converters below so each has one fallback rule:
empty -> "" for text, 0.0 for numbers, None for optional numbers.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union
from .config import LABEL_PATTERNS, SECTION_START_PATTERN, STATUS_APPROVED, STATUS_DENIED, TOTAL_PATTERN
from .parsing import format_meeting_date, parse_amount


def is_formula(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("=")


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, datetime):
        return format_meeting_date(value.date())
    if isinstance(value, date):
        return format_meeting_date(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def as_optional_number(value: Any) -> Optional[float]:
    """Number or None; formula strings without a cached result count as empty."""
    if value is None or isinstance(value, bool) or is_formula(value):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if not s:
        return None
    return parse_amount(s)


def as_number(value: Any) -> float:
    n = as_optional_number(value)
    return 0.0 if n is None else n


def as_status(value: Any) -> str:
    s = as_text(value).lower()
    if s == STATUS_APPROVED.lower():
        return STATUS_APPROVED
    if s == STATUS_DENIED.lower():
        return STATUS_DENIED
    return ""


# ---- row classification ----

@dataclass(frozen=True)
class SectionStart:
    date: str
    sequence: int = 1

    @property
    def key(self) -> str:
        return self.date if self.sequence <= 1 else f"{self.date} #{self.sequence}"


@dataclass(frozen=True)
class Skip:
    reason: str


@dataclass(frozen=True)
class DataRow:
    pass


RowKind = Union[SectionStart, Skip, DataRow]


def match_section_start(value: Any) -> Optional[SectionStart]:
    m = SECTION_START_PATTERN.match(as_text(value))
    if not m:
        return None
    return SectionStart(date=m.group(1), sequence=int(m.group(2)) if m.group(2) else 1)


def classify_row(leading: Any, labels: Iterable[Any], organization: Any) -> RowKind:
    """
    leading: column A; labels: cells that may hold a subtotal/balance label;
    organization: the Organization column, which only skips on a bare total
    or a repeated header.
    """
    start = match_section_start(leading)
    if start is not None:
        return start

    for text in (as_text(v) for v in (leading, *labels)):
        if not text or is_formula(text):
            continue
        if TOTAL_PATTERN.search(text) or any(p.search(text) for p in LABEL_PATTERNS):
            return Skip(f"label {text!r}")

    org = as_text(organization)
    if not org:
        return Skip("blank organization")
    if TOTAL_PATTERN.search(org):
        return Skip(f"label {org!r}")
    if org.lower() == "organization":
        return Skip("header row")
    return DataRow()
