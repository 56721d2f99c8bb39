#!/usr/bin/env python3
"""
ledger_master.py - Weekly budget ledger CLI (CSV export -> ledger .xlsx -> decision deck PDF)

Commands:
  create    start an empty ledger (title + starting budget)
  merge     add one meeting's requests from an export CSV to a ledger
  weeks     list the dated sections found in a ledger
  rows      print the rows of one section
  balances  show subtotal / remaining budget per section and check the formula chain
  deck      build the decision deck PDF for one section

Install:
  pip3 install openpyxl reportlab

Run examples:
  python3 ledger_master.py create --title "Spring Budget" --budget 25000
  python3 ledger_master.py merge requests.csv --ledger output/xlsx/budget_ledger.xlsx --date 2026-02-01
  python3 ledger_master.py weeks output/xlsx/budget_ledger.xlsx
  python3 ledger_master.py rows output/xlsx/budget_ledger.xlsx --week 2/1/26
  python3 ledger_master.py balances output/xlsx/budget_ledger.xlsx
  python3 ledger_master.py deck output/xlsx/budget_ledger.xlsx --week 2/1/26

Bare output filenames are written under output/xlsx or output/pdf.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from ledger_core.config import DEFAULT_DECK_OUT, DEFAULT_LEDGER_OUT, DEFAULT_LEDGER_TITLE
from ledger_core.deck import compile_deck
from ledger_core.errors import LedgerError
from ledger_core.formulas import check_balance_chain, project_balances
from ledger_core.intake import filter_for_ledger, load_export, normalize
from ledger_core.models import Category
from ledger_core.naming import allocate_display_names, organization_stats
from ledger_core.paths import OUT_LOG_DIR, out_path
from ledger_core.reader import decided_rows_for_section, parse_ledger, rows_for_section
from ledger_core.utils import fmt_money, timestamp_line
from ledger_core.workbook import create_ledger_bytes, find_category_sheet, load_ledger
from ledger_core.writer import merge_ledger

log = logging.getLogger("ledger_master")


# -----------------------------
# Logging
# -----------------------------
def setup_logging(base_dir: Path) -> Path:
    logs_dir = base_dir / OUT_LOG_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = logs_dir / f"ledger_master_{stamp}.log"

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # avoid duplicate handlers if imported and run more than once
    if not root.handlers:
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(fmt)

        sh = logging.StreamHandler()
        sh.setLevel(logging.INFO)
        sh.setFormatter(fmt)

        root.addHandler(fh)
        root.addHandler(sh)

    logging.info("Logging started: %s", log_path)
    return log_path


def resolve_input_path(path_str: str) -> Path:
    p = Path(path_str).expanduser()
    if p.exists():
        return p.resolve()
    alt = Path(__file__).resolve().parent / path_str
    if alt.exists():
        return alt.resolve()
    return p.resolve()  # may not exist; caller errors later


def read_existing(path_str: str) -> bytes:
    p = resolve_input_path(path_str)
    if not p.exists():
        raise FileNotFoundError(f"Ledger not found: {path_str}")
    return p.read_bytes()


def report_warnings(warnings: Sequence[str]) -> None:
    for w in warnings:
        log.warning(w)
        print(f"  ! {w}")


# -----------------------------
# Commands
# -----------------------------
def run_create(title: str, budget: Optional[float], out_xlsx: str, base_dir: Path) -> Path:
    xlsx_path = out_path("xlsx", out_xlsx, base_dir)
    xlsx_path.write_bytes(create_ledger_bytes(title, budget))
    print(f"✅ Ledger created: {xlsx_path}")
    return xlsx_path


def run_merge(in_csv: str, ledger: str, meeting_date: str, out_xlsx: str, title: str, base_dir: Path) -> Path:
    csv_path = resolve_input_path(in_csv)
    if not csv_path.exists():
        raise FileNotFoundError(f"Input CSV not found: {in_csv}")

    headers, raw_rows = load_export(csv_path)
    intake = normalize(raw_rows, headers)
    report_warnings(intake.warnings)
    if intake.errors:
        raise LedgerError("Export could not be read: " + "; ".join(intake.errors))

    batch = filter_for_ledger(intake.records)
    records = allocate_display_names(batch.records)
    existing = read_existing(ledger) if ledger else None

    result = merge_ledger(existing, records, meeting_date, title=title)
    xlsx_path = out_path("xlsx", out_xlsx, base_dir)
    xlsx_path.write_bytes(result.document)

    report_warnings(batch.warnings + result.warnings)
    written = ", ".join(f"Week of {k}" for k in result.sections_written) or "nothing"
    print(f"✅ Merged {len(records)} request(s) ({written}): {xlsx_path}")
    stats = organization_stats(records)
    print(
        f"  {stats['total_organizations']} organization(s), "
        f"{stats['orgs_with_multiple_requests']} with more than one request"
    )
    return xlsx_path


def run_weeks(ledger: str) -> None:
    parsed = parse_ledger(read_existing(ledger))
    print(timestamp_line("Generated"))
    print("✅ Sections (newest first):")
    for s in parsed.sections:
        print(
            f"  - Week of {s.key}: {s.request_count} request(s) "
            f"[{s.approved_count} approved, {s.denied_count} denied, {s.undecided_count} no status] "
            f"AFR {s.pool_count} / Reallocation {s.simple_count}"
        )
    report_warnings(parsed.warnings)


def run_rows(ledger: str, week: str) -> None:
    rows = rows_for_section(read_existing(ledger), week)
    print(f"✅ Week of {week}: {len(rows)} row(s)")
    for r in rows:
        status = r.decision_status or "no status"
        print(
            f"  - [{r.category.value}] {r.display_name}: requested {fmt_money(r.requested_amount)}, "
            f"final {fmt_money(r.final_amount)} ({status})"
        )


def run_balances(ledger: str) -> List[str]:
    # formulas, not cached values
    wb = load_ledger(read_existing(ledger))
    ws = find_category_sheet(wb, Category.POOL_TRACKED)
    if ws is None:
        raise LedgerError("Ledger has no AFR sheet; there is no budget to track")
    print("✅ Remaining budget by section:")
    for p in project_balances(ws):
        print(f"  - Week of {p.section}: subtotal {fmt_money(p.subtotal)}, remaining {fmt_money(p.remaining)}")
    problems = check_balance_chain(ws)
    if problems:
        report_warnings(problems)
    else:
        print("  Balance chain OK")
    return problems


def run_deck(ledger: str, week: str, out_pdf: str, base_dir: Path) -> Path:
    section = decided_rows_for_section(read_existing(ledger), week)
    report_warnings(section.warnings)
    pdf_path = out_path("pdf", out_pdf, base_dir)
    pdf_path.write_bytes(compile_deck(section.rows, week))
    print(f"✅ Decision deck created ({len(section.rows)} request(s)): {pdf_path}")
    return pdf_path


# -----------------------------
# CLI
# -----------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Weekly budget ledger: merge request exports, read sections, build decks.")
    p.add_argument("--base-dir", default=".", help="Folder that receives output/ (default: current folder).")

    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("create", help="Create an empty ledger.")
    c.add_argument("--title", default=DEFAULT_LEDGER_TITLE)
    c.add_argument("--budget", type=float, default=None, help="Starting budget (left blank when omitted).")
    c.add_argument("--out", default=DEFAULT_LEDGER_OUT, help="Output .xlsx filename.")

    m = sub.add_parser("merge", help="Merge an export CSV into a ledger as a new dated section.")
    m.add_argument("input_csv", help="Request export CSV.")
    m.add_argument("--ledger", default="", help="Existing ledger .xlsx (a new one is started when omitted).")
    m.add_argument("--date", required=True, help="Meeting date, e.g. 2026-02-01 or 2/1/26.")
    m.add_argument("--title", default=DEFAULT_LEDGER_TITLE, help="Title used when a new ledger is started.")
    m.add_argument("--out", default=DEFAULT_LEDGER_OUT, help="Output .xlsx filename.")

    w = sub.add_parser("weeks", help="List the sections in a ledger.")
    w.add_argument("ledger")

    r = sub.add_parser("rows", help="Print one section's rows.")
    r.add_argument("ledger")
    r.add_argument("--week", required=True, help='Section key, e.g. "2/1/26" or "2/1/26 #2".')

    b = sub.add_parser("balances", help="Project remaining budget and check the formula chain.")
    b.add_argument("ledger")

    d = sub.add_parser("deck", help="Build the decision deck PDF for one section.")
    d.add_argument("ledger")
    d.add_argument("--week", required=True)
    d.add_argument("--out", default=DEFAULT_DECK_OUT, help="Output .pdf filename.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    base_dir = Path(args.base_dir).expanduser().resolve()
    setup_logging(base_dir)

    try:
        if args.cmd == "create":
            run_create(args.title, args.budget, args.out, base_dir)
        elif args.cmd == "merge":
            run_merge(args.input_csv, args.ledger, args.date, args.out, args.title, base_dir)
        elif args.cmd == "weeks":
            run_weeks(args.ledger)
        elif args.cmd == "rows":
            run_rows(args.ledger, args.week)
        elif args.cmd == "balances":
            if run_balances(args.ledger):
                return 1
        elif args.cmd == "deck":
            run_deck(args.ledger, args.week, args.out, base_dir)
        else:
            raise ValueError(f"Unknown command: {args.cmd}")
    except LedgerError as e:
        log.error("%s", e)
        print(f"❌ {e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
