"""
ledger_core.config
Central configuration/constants for the weekly ledger workbook.
"""
from __future__ import annotations
import re

# outputs (filenames)
DEFAULT_LEDGER_OUT = "budget_ledger.xlsx"
DEFAULT_DECK_OUT = "decision_deck.pdf"
DEFAULT_LEDGER_TITLE = "Budget Ledger"

# sheet names; the first entry is what we write, the rest are legacy names we still read
POOL_SHEET_NAMES = ("AFR Requests", "AFR", "Sunday Meeting")
SIMPLE_SHEET_NAMES = ("Reallocation Requests", "Reallocation")

# (key, header, width)
POOL_COLUMNS = [
    ("meeting_date", "Date of Meeting", 15),
    ("note", "Notes", 12),
    ("organization", "Organization", 30),
    ("requested", "AFR'd", 14),
    ("amended", "Amended", 12),
    ("after_adjustment", "After Amendments", 18),
    ("status", "Status", 12),
    ("final", "Final Amount", 14),
    ("remaining", "Remaining Budget", 18),
    ("name_of_org", "Name of Org", 30),
    ("entered", "Entered in KFS?", 15),
    ("account", "Account Number", 18),
]

SIMPLE_COLUMNS = [
    ("meeting_date", "Date of Meeting", 15),
    ("note", "Notes", 12),
    ("organization", "Organization", 30),
    ("requested", "Requested Amount", 18),
    ("after_adjustment", "Approved Amount", 18),
    ("status", "Status", 12),
    ("account", "Account Number", 18),
]

# header texts that count as the same column when an older workbook is uploaded
HEADER_ALIASES = {
    "requested": ("AFR'd", "AFR'd / Requested Amount", "Requested Amount"),
    "meeting_date": ("Date of Meeting", "Date"),
}

TITLE_ROW = 1
HEADER_ROW = 2
FIRST_DATA_ROW = 3
FREEZE_AT = "A3"

# starting balance lives in the Remaining Budget column of the title row
STARTING_BALANCE_CELL = "I1"
STARTING_BALANCE_FORMAT = '"Starting Budget: "$#,##0.00'
MONEY_FORMAT = '"$"#,##0.00'

# labels written by the ledger writer
SECTION_PREFIX = "Week of"
SUBTOTAL_LABEL = "Weekly Subtotal:"
REMAINING_LABEL = "Remaining Budget:"
STATUS_APPROVED = "Approved"
STATUS_DENIED = "Denied"
STATUS_CHOICES = '"Approved,Denied"'

# reader patterns
SECTION_START_PATTERN = re.compile(
    r"^Week\s+of\s+(\d{1,2}/\d{1,2}(?:/\d{2,4})?)(?:\s*#(\d+))?",
    flags=re.IGNORECASE,
)
# Subtotal and balance labels; searched in column A and the label column only
LABEL_PATTERNS = (
    re.compile(r"weekly\s*subtotal", flags=re.IGNORECASE),
    re.compile(r"remaining\s*budget", flags=re.IGNORECASE),
    re.compile(r"(initial|starting)\s*budget", flags=re.IGNORECASE),
)
# A whole-cell "Total" or "Grand Total: $500"; "Total Wellness" is an organization
TOTAL_PATTERN = re.compile(r"^(grand\s+)?total\b[^A-Za-z]*$", flags=re.IGNORECASE)
# Notes of pre-decided requests look like "Auto-Cleared: Snacks"
NOTE_TAG_PATTERN = re.compile(r"^([A-Za-z][A-Za-z \-]*?)\s*:\s*(.*)$", flags=re.DOTALL)

MEETING_DATE_INPUT_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
)

# size ceilings, rejected with LedgerSizeError instead of truncating
MAX_BATCH_ROWS = 1000
MAX_SHEET_ROWS = 20000

BRANDING = {
    "header_bg": "A32638",
    "header_font": "FFFFFF",
    "title_font": "1E1E1E",
    "section_bg": "F5F5F5",
    "subtotal_bg": "D9E2F3",
    "subtotal_border": "4472C4",
    "remaining_bg": "FFF2CC",
    "remaining_border": "DFA500",
    "grid": "D0D0D0",
}

# upstream export columns (record normalizer)
EXPORT_COLUMNS = {
    "id": "Submission Id",
    "organization": "Please enter the name of the organization this request is for:",
    "request_type": "What type of request is this?",
    "pool_amount": "Total Cost of AFR:",
    "simple_amount": "Total Amount to Reallocate:",
    "approval_status": "Approval Status",
    "pool_route": "Finance Review",
    "simple_route": "Finance Review_1",
    "pool_description": "Please explain the details of the Additional Funding Request.",
    "simple_description": "Please explain the details of the reallocation request.",
    "account": "Please list the account number you would like any additional approved funds to be deposited into:",
}

REQUIRED_EXPORT_COLUMNS = ["id", "organization", "request_type", "approval_status"]

# timestamps on generated decks
LOCAL_TZ = "America/New_York"
