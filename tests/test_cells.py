from __future__ import annotations

from datetime import date, datetime

import pytest

from ledger_core.cells import (
    DataRow,
    SectionStart,
    Skip,
    as_number,
    as_optional_number,
    as_status,
    as_text,
    classify_row,
    match_section_start,
)
from ledger_core.parsing import (
    format_meeting_date,
    parse_amount,
    parse_meeting_date,
    section_date_to_iso,
)


def test_section_marker_wins():
    assert classify_row("Week of 2/1/26", [None], None) == SectionStart("2/1/26")
    assert classify_row("week of 2/1/26 #3", [], None) == SectionStart("2/1/26", 3)
    assert SectionStart("2/1/26", 3).key == "2/1/26 #3"
    assert SectionStart("2/1/26").key == "2/1/26"


@pytest.mark.parametrize(
    "leading, labels, organization",
    [
        (None, ["Weekly Subtotal:"], None),
        (None, ["Remaining Budget:"], None),
        ("Starting Budget", [None], None),
        (None, [None], "TOTAL"),
        (None, [None], "Grand Total:"),
    ],
)
def test_balance_and_total_rows_are_skipped(leading, labels, organization):
    assert isinstance(classify_row(leading, labels, organization), Skip)


def test_header_and_blank_rows_are_skipped():
    assert classify_row("Date of Meeting", ["Status"], "Organization") == Skip("header row")
    assert classify_row("2/1/26", [None], "  ") == Skip("blank organization")


def test_organization_names_that_contain_total_are_data():
    assert classify_row(None, [None], "Total Wellness Club") == DataRow()
    assert classify_row("2/1/26", ["Approved"], "SGA") == DataRow()


def test_formula_labels_are_not_matched_as_text():
    assert classify_row(None, ["=remaining_budget"], "SGA") == DataRow()


def test_match_section_start_rejects_other_text():
    assert match_section_start("Weekly Subtotal:") is None
    assert match_section_start(None) is None


def test_cell_accessors():
    assert as_text(None) == ""
    assert as_text(12345.0) == "12345"
    assert as_text(datetime(2026, 2, 1, 9, 30)) == "2/1/26"
    assert as_text("  SGA ") == "SGA"

    assert as_optional_number(None) is None
    assert as_optional_number("=D5-F5") is None
    assert as_optional_number("") is None
    assert as_optional_number("$1,250.50") == 1250.50
    assert as_optional_number(True) is None
    assert as_number(None) == 0.0
    assert as_number(42) == 42.0

    assert as_status(" approved ") == "Approved"
    assert as_status("DENIED") == "Denied"
    assert as_status("pending") == ""


def test_parse_amount():
    assert parse_amount("$1,234.56") == 1234.56
    assert parse_amount("(50.00)") == -50.0
    assert parse_amount("") == 0.0
    assert parse_amount("n/a") == 0.0
    assert parse_amount(12) == 12.0


def test_meeting_dates():
    assert parse_meeting_date("2026-02-01") == date(2026, 2, 1)
    assert parse_meeting_date("2/1/26") == date(2026, 2, 1)
    assert parse_meeting_date("2026-02-01T10:00:00") == date(2026, 2, 1)
    assert parse_meeting_date(datetime(2026, 2, 1, 8)) == date(2026, 2, 1)
    assert parse_meeting_date("soon") is None
    assert format_meeting_date(date(2026, 12, 31)) == "12/31/26"


def test_section_date_to_iso():
    assert section_date_to_iso("2/1/26") == "2026-02-01"
    assert section_date_to_iso("2/1/2026") == "2026-02-01"
    assert section_date_to_iso("2/1", default_year=2025) == "2025-02-01"
    assert section_date_to_iso("2/30/26") == ""
    assert section_date_to_iso("Week") == ""


@pytest.mark.parametrize(
    "organization",
    ["Starting Budget Committee", "Remaining Budget Task Force", "Weekly Subtotal Society", "=SGA"],
)
def test_organization_names_that_look_like_labels_are_data(organization):
    assert classify_row("2/1/26", [None], organization) == DataRow()
