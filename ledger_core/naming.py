"""
ledger_core.naming
Display names for organizations that submit more than one request in a batch.
"""
from __future__ import annotations
from typing import Dict, List, Sequence
from .models import RequestRecord


def org_key(name: str) -> str:
    return (name or "").strip().lower()


def group_by_organization(records: Sequence[RequestRecord]) -> Dict[str, List[RequestRecord]]:
    groups: Dict[str, List[RequestRecord]] = {}
    for r in records:
        groups.setdefault(org_key(r.organization_name), []).append(r)
    return groups


def allocate_display_names(records: Sequence[RequestRecord]) -> List[RequestRecord]:
    """
    Number repeated organizations in input order: "SGA 1", "SGA 2", ...
    Names are grouped case-insensitively but each record keeps its own casing.
    Unique names come back unchanged. The input list is not modified.
    """
    if not records:
        return []

    sizes = {k: len(v) for k, v in group_by_organization(records).items()}
    counters: Dict[str, int] = {}
    out: List[RequestRecord] = []
    for r in records:
        k = org_key(r.organization_name)
        if sizes[k] > 1:
            counters[k] = counters.get(k, 0) + 1
            out.append(r.with_display_name(f"{r.organization_name} {counters[k]}"))
        else:
            out.append(r.with_display_name(r.organization_name))
    return out


def organization_stats(records: Sequence[RequestRecord]) -> Dict[str, object]:
    groups = group_by_organization(records)
    per_org = {g[0].organization_name: len(g) for g in groups.values()}
    return {
        "total_organizations": len(groups),
        "orgs_with_multiple_requests": sum(1 for g in groups.values() if len(g) > 1),
        "requests_per_org": per_org,
    }
