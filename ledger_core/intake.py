"""
ledger_core.intake
Upstream CSV export -> RequestRecord list, plus the filter that keeps denied
and late-arrival requests out of the ledger.
"""
from __future__ import annotations
import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import EXPORT_COLUMNS, REQUIRED_EXPORT_COLUMNS
from .models import (
    Category,
    LifecycleState,
    RequestRecord,
    RoutingClass,
    compose_note,
    routing_from_text,
)
from .parsing import parse_amount
from .utils import normalize_spaces

log = logging.getLogger(__name__)


@dataclass
class IntakeResult:
    records: List[RequestRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class LedgerBatch:
    records: List[RequestRecord] = field(default_factory=list)
    excluded_denied: int = 0
    excluded_late: int = 0
    warnings: List[str] = field(default_factory=list)


def dedupe_headers(headers: Sequence[str]) -> List[str]:
    """The export repeats "Finance Review"; the second copy becomes "Finance Review_1"."""
    seen: Dict[str, int] = {}
    out: List[str] = []
    for h in headers:
        h = (h or "").strip()
        n = seen.get(h, 0)
        out.append(h if n == 0 else f"{h}_{n}")
        seen[h] = n + 1
    return out


def load_export(csv_path: Path) -> Tuple[List[str], List[Dict[str, Any]]]:
    # utf-8-sig drops the byte-order mark some exports carry
    with open(csv_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        raw_headers = next(reader, [])
        headers = dedupe_headers(raw_headers)
        rows = []
        for values in reader:
            if not any((v or "").strip() for v in values):
                continue
            rows.append(dict(zip(headers, values)))
    log.info("Loaded %d row(s) from %s", len(rows), csv_path)
    return headers, rows


def resolve_column(headers: Sequence[str], wanted: str) -> Optional[str]:
    """Exact header match first, then a header that starts with the configured text."""
    if wanted in headers:
        return wanted
    for h in headers:
        if h.startswith(wanted):
            return h
    return None


def missing_columns(headers: Sequence[str]) -> List[str]:
    return [EXPORT_COLUMNS[k] for k in REQUIRED_EXPORT_COLUMNS if resolve_column(headers, EXPORT_COLUMNS[k]) is None]


def normalize_request_type(value: str) -> Category:
    v = (value or "").strip().lower()
    # "rellocation" and "re-allocation" turn up in real exports
    if "realloc" in v or "relloc" in v or "re-alloc" in v or "re alloc" in v:
        return Category.SIMPLE
    return Category.POOL_TRACKED


def normalize_lifecycle(value: str) -> LifecycleState:
    v = (value or "").strip().lower()
    if v == "approved":
        return LifecycleState.APPROVED
    if v in ("denied", "rejected"):
        return LifecycleState.DENIED
    return LifecycleState.UNDECIDED


def normalize_routing(value: str) -> RoutingClass:
    return routing_from_text(value) or RoutingClass.SESSION_REVIEW


def _get(row: Dict[str, Any], column: Optional[str]) -> str:
    if not column:
        return ""
    return str(row.get(column) or "").strip()


def normalize(raw_rows: Sequence[Dict[str, Any]], headers: Sequence[str]) -> IntakeResult:
    result = IntakeResult()
    if not raw_rows:
        result.errors.append("CSV content is empty")
        return result

    missing = missing_columns(headers)
    if missing:
        for col in missing:
            result.errors.append(f"Missing required column: {col!r}")
        return result

    cols = {k: resolve_column(headers, v) for k, v in EXPORT_COLUMNS.items()}

    for i, row in enumerate(raw_rows, start=1):
        rid = _get(row, cols["id"])
        if not rid:
            continue
        org = normalize_spaces(_get(row, cols["organization"]))
        if not org:
            result.warnings.append(f"Row {i}: missing organization name, skipping")
            continue

        category = normalize_request_type(_get(row, cols["request_type"]))
        if category == Category.POOL_TRACKED:
            amount = parse_amount(_get(row, cols["pool_amount"]))
            description = _get(row, cols["pool_description"])
            route_text = _get(row, cols["pool_route"])
        else:
            amount = parse_amount(_get(row, cols["simple_amount"]))
            description = _get(row, cols["simple_description"])
            route_text = _get(row, cols["simple_route"]) or _get(row, cols["pool_route"])

        lifecycle = normalize_lifecycle(_get(row, cols["approval_status"]))
        routing = normalize_routing(route_text)
        result.records.append(RequestRecord(
            id=rid,
            organization_name=org,
            category=category,
            requested_amount=amount,
            lifecycle_state=lifecycle,
            routing_class=routing,
            account_reference=_get(row, cols["account"]),
            note=compose_note(routing, description, lifecycle),
        ))

    if not result.records:
        result.errors.append("No valid budget requests found in CSV")
    log.info("Normalized %d record(s), %d warning(s)", len(result.records), len(result.warnings))
    return result


def filter_for_ledger(records: Sequence[RequestRecord]) -> LedgerBatch:
    """
    Drop denied and late-arrival requests; report both counts.
    A request that is both denied and late counts as denied.
    """
    batch = LedgerBatch()
    for r in records:
        if r.lifecycle_state == LifecycleState.DENIED:
            batch.excluded_denied += 1
        elif r.routing_class == RoutingClass.LATE_ARRIVAL:
            batch.excluded_late += 1
        else:
            batch.records.append(r)

    if batch.excluded_denied:
        batch.warnings.append(f"{batch.excluded_denied} denied request(s) were excluded from the ledger.")
    if batch.excluded_late:
        batch.warnings.append(f"{batch.excluded_late} late submission(s) were excluded from the ledger.")

    pre_approved = sum(1 for r in batch.records if r.is_pre_approved)
    if pre_approved:
        batch.warnings.append(f"{pre_approved} pre-approved request(s) will be added with \"Approved\" pre-filled.")

    log.info(
        "Ledger batch: %d kept, %d denied, %d late",
        len(batch.records), batch.excluded_denied, batch.excluded_late,
    )
    return batch
