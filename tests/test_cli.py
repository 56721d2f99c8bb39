from __future__ import annotations

import csv
from pathlib import Path

import ledger_master
from ledger_core.reader import parse_ledger

HEADERS = [
    "Submission Id",
    "Please enter the name of the organization this request is for:",
    "What type of request is this?",
    "Total Cost of AFR:",
    "Total Amount to Reallocate:",
    "Approval Status",
    "Finance Review",
    "Finance Review",
    "Please explain the details of the Additional Funding Request.",
    "Please explain the details of the reallocation request.",
    "Please list the account number you would like any additional approved funds to be deposited into:",
]


def _export(path: Path, rows=None) -> Path:
    rows = rows or [
        ["1", "SGA", "AFR", "$200", "", "Pending Approval", "Sunday Meeting", "", "Jerseys", "", "1-111"],
        ["2", "SGA", "AFR", "$50", "", "Approved", "Auto-Approve", "", "Snacks", "", "1-111"],
        ["3", "Chess", "AFR", "$80", "", "Denied", "Sunday Meeting", "", "Trip", "", "1-222"],
        ["4", "Film", "AFR", "$40", "", "Pending Approval", "Finance Review", "", "Late", "", "1-333"],
        ["5", "Robotics", "Reallocation", "", "$30", "Pending Approval", "", "Sunday Meeting", "", "Move", "1-444"],
    ]
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(HEADERS)
        w.writerows(rows)
    return path


def test_create_merge_weeks_rows_balances_deck(tmp_path, capsys):
    base = ["--base-dir", str(tmp_path)]
    ledger = tmp_path / "output" / "xlsx" / "ledger.xlsx"

    assert ledger_master.main(base + ["create", "--title", "Spring", "--budget", "1000", "--out", "ledger.xlsx"]) == 0
    assert ledger.exists()

    export = _export(tmp_path / "export.csv")
    code = ledger_master.main(base + ["merge", str(export), "--ledger", str(ledger), "--date", "2026-02-01",
                                      "--out", "ledger.xlsx"])
    assert code == 0
    out = capsys.readouterr().out
    assert "1 denied request(s) were excluded" in out
    assert "1 late submission(s) were excluded" in out
    assert "2 organization(s), 1 with more than one request" in out

    parsed = parse_ledger(ledger.read_bytes())
    s = parsed.sections[0]
    assert s.key == "2/1/26"
    assert (s.pool_count, s.simple_count) == (2, 1)
    assert s.approved_count == 1

    assert ledger_master.main(base + ["weeks", str(ledger)]) == 0
    assert "Week of 2/1/26: 3 request(s)" in capsys.readouterr().out

    assert ledger_master.main(base + ["rows", str(ledger), "--week", "2/1/26"]) == 0
    out = capsys.readouterr().out
    assert "SGA 1" in out and "SGA 2" in out

    assert ledger_master.main(base + ["balances", str(ledger)]) == 0
    out = capsys.readouterr().out
    assert "remaining $950.00" in out
    assert "Balance chain OK" in out

    assert ledger_master.main(base + ["deck", str(ledger), "--week", "2/1/26", "--out", "deck.pdf"]) == 0
    deck = tmp_path / "output" / "pdf" / "deck.pdf"
    assert deck.read_bytes().startswith(b"%PDF")


def test_ledger_errors_become_exit_status(tmp_path, capsys):
    bogus = tmp_path / "bogus.xlsx"
    bogus.write_bytes(b"not a workbook")
    assert ledger_master.main(["--base-dir", str(tmp_path), "weeks", str(bogus)]) == 2
    assert "not a readable .xlsx" in capsys.readouterr().out


def test_unknown_week(tmp_path, capsys):
    base = ["--base-dir", str(tmp_path)]
    ledger_master.main(base + ["create", "--out", "ledger.xlsx"])
    ledger = tmp_path / "output" / "xlsx" / "ledger.xlsx"
    assert ledger_master.main(base + ["rows", str(ledger), "--week", "2/1/26"]) == 2
    assert "No sections found" in capsys.readouterr().out


def test_merge_reports_each_validation_warning_once(tmp_path, capsys):
    export = _export(tmp_path / "export.csv", rows=[
        ["1", "SGA", "AFR", "$0", "", "Pending Approval", "Sunday Meeting", "", "Banners", "", "#"],
        ["2", "Chess", "AFR", "$80", "", "Pending Approval", "Sunday Meeting", "", "Trip", "", "1-222"],
    ])
    code = ledger_master.main(["--base-dir", str(tmp_path), "merge", str(export), "--date", "2026-02-01"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert sum("amount is $0" in line for line in lines) == 1
    assert sum("account number is missing" in line for line in lines) == 1
    assert "  2 organization(s), 0 with more than one request" in lines
