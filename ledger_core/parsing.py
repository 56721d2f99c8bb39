"""
ledger_core.parsing
Amount and meeting-date parsing/formatting.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Optional, Union
from .config import MEETING_DATE_INPUT_FORMATS

def parse_amount(value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    s = str(value).strip()
    if not s:
        return 0.0
    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1].strip()
    s = s.replace("$", "").replace(",", "").replace(" ", "")
    try:
        n = float(s)
        return -n if neg else n
    except ValueError:
        return 0.0

def parse_meeting_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Accepts a date, a datetime, or a string like "2026-02-01" / "2/1/2026" / "2/1/26"."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    s = s.split()[0]
    if "T" in s:
        s = s.split("T")[0]
    for fmt in MEETING_DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None

def format_meeting_date(d: date) -> str:
    # 2026-02-01 -> "2/1/26"
    return f"{d.month}/{d.day}/{d.year % 100:02d}"

def section_date_to_iso(text: str, default_year: Optional[int] = None) -> str:
    """
    "2/1/26" -> "2026-02-01". "2/1" takes default_year (current year when omitted).
    Returns "" when the text is not a M/D[/Y] date.
    """
    parts = (text or "").strip().split("/")
    if len(parts) not in (2, 3):
        return ""
    try:
        month = int(parts[0])
        day = int(parts[1])
        if len(parts) == 3:
            year = int(parts[2])
            if year < 100:
                year += 2000
        else:
            year = default_year or date.today().year
        return date(year, month, day).isoformat()
    except ValueError:
        return ""
