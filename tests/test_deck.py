from __future__ import annotations

from ledger_core.deck import compile_deck
from ledger_core.models import Category, DecidedRow, RoutingClass


def _row(name, requested, final, status, routing=RoutingClass.SESSION_REVIEW, description=""):
    return DecidedRow(
        display_name=name,
        category=Category.POOL_TRACKED,
        requested_amount=requested,
        final_amount=final,
        status=status,
        routing_class=routing,
        description=description,
        account_reference="1-23456",
    )


def test_deck_is_a_pdf():
    rows = [
        _row("Snack Club", 75, 75, "Approved", RoutingClass.AUTO_CLEARED, "Snacks"),
        _row("SGA & Friends", 200, 150, "Approved", description="Jerseys <home> and away\nplus socks"),
        _row("Chess", 100, 0, "Denied"),
    ]
    pdf = compile_deck(rows, "2/1/26")
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_deck_with_no_rows_still_renders():
    assert compile_deck([], "2/1/26").startswith(b"%PDF")
