"""
ledger_core.utils
Small reusable helpers.
"""
from __future__ import annotations
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from .config import LOCAL_TZ

def normalize_spaces(text: str) -> str:
    return " ".join((text or "").split()).strip()

def fmt_money(n: float) -> str:
    return f"${n:,.2f}"

def now_local(tz_name: str = LOCAL_TZ) -> datetime:
    try:
        return datetime.now(ZoneInfo(tz_name))
    except ZoneInfoNotFoundError:
        return datetime.now()

def timestamp_line(prefix: str = "Generated") -> str:
    dt = now_local()
    return f"{prefix}: {dt.strftime('%Y-%m-%d %H:%M:%S %Z')}".rstrip()
