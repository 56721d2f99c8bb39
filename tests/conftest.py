"""Shared fixtures for the ledger tests.

Records are built through ``make_record`` so each test only spells out the
fields it cares about. Ledgers are handled as bytes the same way the CLI does.
"""

from __future__ import annotations

import io
from typing import Callable

import pytest
from openpyxl import load_workbook

from ledger_core.models import Category, LifecycleState, RequestRecord, RoutingClass


@pytest.fixture
def make_record() -> Callable[..., RequestRecord]:
    counter = {"n": 0}

    def _make(
        organization: str,
        amount: float = 100.0,
        category: Category = Category.POOL_TRACKED,
        lifecycle: LifecycleState = LifecycleState.UNDECIDED,
        routing: RoutingClass = RoutingClass.SESSION_REVIEW,
        account: str = "1-23456",
        note: str = "",
    ) -> RequestRecord:
        counter["n"] += 1
        return RequestRecord(
            id=f"S{counter['n']:04d}",
            organization_name=organization,
            category=category,
            requested_amount=amount,
            lifecycle_state=lifecycle,
            routing_class=routing,
            account_reference=account,
            note=note,
        )

    return _make


def open_workbook(document: bytes, data_only: bool = False):
    return load_workbook(io.BytesIO(document), data_only=data_only)


@pytest.fixture
def workbook_from() -> Callable:
    return open_workbook
