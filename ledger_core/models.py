"""
ledger_core.models
Request records, ledger rows and section summaries.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class Category(str, Enum):
    POOL_TRACKED = "AFR"
    SIMPLE = "Reallocation"


class LifecycleState(str, Enum):
    UNDECIDED = "Undecided"
    APPROVED = "Decided-Approved"
    DENIED = "Decided-Denied"


class RoutingClass(str, Enum):
    AUTO_CLEARED = "Auto-Cleared"
    PRE_REVIEWED = "Pre-Reviewed"
    SESSION_REVIEW = "Session Review"
    LATE_ARRIVAL = "Late Arrival"


# routing classes that decide a request before the session; they tag the note
PRE_SESSION_ROUTES = (RoutingClass.AUTO_CLEARED, RoutingClass.PRE_REVIEWED)

# upstream spellings -> routing class
ROUTING_ALIASES = {
    "auto-cleared": RoutingClass.AUTO_CLEARED,
    "auto cleared": RoutingClass.AUTO_CLEARED,
    "auto-approve": RoutingClass.AUTO_CLEARED,
    "auto approve": RoutingClass.AUTO_CLEARED,
    "autoapprove": RoutingClass.AUTO_CLEARED,
    "pre-reviewed": RoutingClass.PRE_REVIEWED,
    "pre reviewed": RoutingClass.PRE_REVIEWED,
    "budget review": RoutingClass.PRE_REVIEWED,
    "session review": RoutingClass.SESSION_REVIEW,
    "sunday meeting": RoutingClass.SESSION_REVIEW,
    "late arrival": RoutingClass.LATE_ARRIVAL,
    "late-arrival": RoutingClass.LATE_ARRIVAL,
    "finance review": RoutingClass.LATE_ARRIVAL,
}


def routing_from_text(value: Optional[str]) -> Optional[RoutingClass]:
    key = " ".join((value or "").split()).lower()
    return ROUTING_ALIASES.get(key)


def compose_note(routing: RoutingClass, description: str, lifecycle: LifecycleState) -> str:
    """
    Build the Notes cell for a request.
    Pre-decided requests carry their routing tag so the reader can recover it:
      compose_note(AUTO_CLEARED, "Snacks", APPROVED) -> "Auto-Cleared: Snacks"
    Requests still waiting on the session keep the bare description.
    """
    description = (description or "").strip()
    if lifecycle != LifecycleState.UNDECIDED and routing in PRE_SESSION_ROUTES:
        return f"{routing.value}: {description}"
    return description


@dataclass(frozen=True)
class RequestRecord:
    id: str
    organization_name: str
    category: Category
    requested_amount: float
    lifecycle_state: LifecycleState = LifecycleState.UNDECIDED
    routing_class: RoutingClass = RoutingClass.SESSION_REVIEW
    account_reference: str = ""
    note: str = ""
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name if self.display_name is not None else self.organization_name

    @property
    def is_pre_approved(self) -> bool:
        return self.lifecycle_state == LifecycleState.APPROVED

    def with_display_name(self, name: str) -> "RequestRecord":
        return replace(self, display_name=name)


@dataclass
class LedgerRow:
    display_name: str
    category: Category
    requested_amount: float
    after_adjustment: Optional[float]
    decision_status: str
    amended_amount: Optional[float]
    final_amount: float
    note: str = ""
    account_reference: str = ""
    sheet_row: int = 0

    @property
    def is_decided(self) -> bool:
        return bool(self.decision_status)


@dataclass
class DecidedRow:
    display_name: str
    category: Category
    requested_amount: float
    final_amount: float
    status: str
    routing_class: RoutingClass
    description: str
    account_reference: str = ""

    @property
    def was_amended(self) -> bool:
        return abs(self.final_amount - self.requested_amount) > 0.005 and self.status == "Approved"


@dataclass
class WeekSummary:
    key: str
    date: str
    date_iso: str
    sequence: int = 1
    request_count: int = 0
    approved_count: int = 0
    denied_count: int = 0
    undecided_count: int = 0
    pool_count: int = 0
    simple_count: int = 0


@dataclass
class ParseResult:
    sections: List[WeekSummary] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def keys(self) -> List[str]:
        return [s.key for s in self.sections]


@dataclass
class MergeResult:
    document: bytes
    warnings: List[str] = field(default_factory=list)
    sections_written: List[str] = field(default_factory=list)


@dataclass
class SectionRows:
    rows: List[DecidedRow] = field(default_factory=list)
    excluded_count: int = 0
    warnings: List[str] = field(default_factory=list)
