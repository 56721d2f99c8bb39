"""
ledger_core.errors
Exceptions raised at the writer/reader boundary.
"""
from __future__ import annotations
from typing import Optional


class LedgerError(ValueError):
    """Base error; carries enough context for the caller to point at the bad spot."""

    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        row: Optional[int] = None,
        organization: Optional[str] = None,
    ):
        self.reason = message
        self.section = section
        self.row = row
        self.organization = organization
        super().__init__(self._render())

    def _render(self) -> str:
        where = []
        if self.section:
            where.append(f"section {self.section}")
        if self.row is not None:
            where.append(f"row {self.row}")
        if self.organization:
            where.append(f"organization {self.organization!r}")
        if not where:
            return self.reason
        return f"{self.reason} ({', '.join(where)})"


class StructuralError(LedgerError):
    """Uploaded workbook lacks a recognizable category sheet, header row or section marker."""


class LedgerSizeError(LedgerError):
    """Batch or sheet is above the row ceiling."""
