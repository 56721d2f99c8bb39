from __future__ import annotations

import pytest
from openpyxl import Workbook

from ledger_core.errors import LedgerError
from ledger_core.formulas import (
    amended_formula,
    check_balance_chain,
    find_last_remaining_cell,
    pool_final_formula,
    project_balances,
    remaining_formula,
    subtotal_formula,
)
from ledger_core.models import LifecycleState
from ledger_core.workbook import create_ledger_bytes
from ledger_core.writer import merge_ledger


def test_formula_builders():
    assert amended_formula(5) == "=D5-F5"
    assert pool_final_formula(5) == '=IF(G5="Approved",F5,0)'
    assert subtotal_formula(5, 9) == "=SUM(H5:H9)"
    assert remaining_formula("I1", 10) == "=I1-H10"


def _three_weeks(make_record, lifecycle=LifecycleState.APPROVED):
    doc = create_ledger_bytes("Budget", 1000)
    batches = [
        ("2026-02-01", [make_record("SGA", 120, lifecycle=lifecycle), make_record("Chess", 80, lifecycle=lifecycle)]),
        ("2026-02-08", [make_record("Robotics", 150, lifecycle=lifecycle)]),
        ("2026-02-15", [make_record("Debate", 60, lifecycle=lifecycle), make_record("Film", 40, lifecycle=lifecycle)]),
    ]
    for day, batch in batches:
        doc = merge_ledger(doc, batch, day).document
    return doc


def test_remaining_budget_chains_across_three_merges(make_record, workbook_from):
    pool = workbook_from(_three_weeks(make_record))["AFR Requests"]
    points = project_balances(pool)
    assert [p.section for p in points] == ["2/1/26", "2/8/26", "2/15/26"]
    assert [p.subtotal for p in points] == [200, 150, 100]
    assert [p.remaining for p in points] == [800, 650, 550]
    assert check_balance_chain(pool) == []


def test_decisions_filled_in_later_flow_through_the_chain(make_record, workbook_from):
    doc = merge_ledger(
        create_ledger_bytes("Budget", 1000),
        [make_record("SGA", 300), make_record("Chess", 100)],
        "2026-02-01",
    ).document
    wb = workbook_from(doc)
    pool = wb["AFR Requests"]
    # reviewer approves SGA at an amended 250 and denies Chess
    pool["F5"] = 250
    pool["G5"] = "Approved"
    pool["F6"] = 100
    pool["G6"] = "Denied"

    points = project_balances(pool)
    assert points[0].subtotal == 250
    assert points[0].remaining == 750


def test_blank_starting_balance_counts_as_zero(make_record, workbook_from):
    doc = merge_ledger(None, [make_record("SGA", 50, lifecycle=LifecycleState.APPROVED)], "2026-02-01").document
    points = project_balances(workbook_from(doc)["AFR Requests"])
    assert points[0].remaining == -50


def test_find_last_remaining_cell(make_record, workbook_from):
    pool = workbook_from(_three_weeks(make_record))["AFR Requests"]
    # sections: rows 4-8, 10-13, 15-19
    assert find_last_remaining_cell(pool) == "I19"


def test_find_last_remaining_cell_on_empty_ledger(workbook_from):
    pool = workbook_from(create_ledger_bytes("Budget", 1000))["AFR Requests"]
    assert find_last_remaining_cell(pool) is None


def test_chain_check_reports_literal_snapshot(make_record, workbook_from):
    pool = workbook_from(_three_weeks(make_record))["AFR Requests"]
    pool["I13"] = 650
    problems = check_balance_chain(pool)
    assert len(problems) == 1
    assert "Week of 2/8/26" in problems[0]
    assert "literal" in problems[0]


def test_chain_check_reports_wrong_predecessor(make_record, workbook_from):
    pool = workbook_from(_three_weeks(make_record))["AFR Requests"]
    pool["I19"] = "=I1-H18"
    problems = check_balance_chain(pool)
    assert len(problems) == 1
    assert "should be =I13-H18" in problems[0]


def test_unsupported_formula_is_rejected(workbook_from):
    wb = workbook_from(create_ledger_bytes("Budget", 1000))
    pool = wb["AFR Requests"]
    pool["A4"] = "Week of 2/1/26"
    pool["C5"] = "SGA"
    pool["H5"] = "=VLOOKUP(C5,Z1:Z9,1)"
    pool["G6"] = "Weekly Subtotal:"
    pool["H6"] = "=SUM(H5:H5)"
    pool["G7"] = "Remaining Budget:"
    pool["I7"] = "=I1-H6"
    with pytest.raises(LedgerError, match="Unsupported formula"):
        project_balances(pool)


def test_projection_ignores_sheet_without_sections():
    wb = Workbook()
    ws = wb.active
    ws["A1"] = "Budget"
    assert project_balances(ws) == []
    assert check_balance_chain(ws) == []
