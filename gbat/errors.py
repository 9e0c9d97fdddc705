"""
Errors — Exception hierarchy for gbat

Each error aborts exactly the scope it belongs to:
- ParseError from a diff aborts one file's replay
- ParseError from a risk file aborts the whole run (shared state)
- InvalidLineNumber / LedgerInvariantViolation abort one file's replay
- HistoryError aborts one file (log) or the run (discovery)
- ConfigError aborts the run before any work starts
"""

from typing import Optional


class GbatError(Exception):
    """Base class for all gbat errors."""


class ParseError(GbatError):
    """
    Raised when text input cannot be decoded.

    Carries the offending line when one is known so the message
    points at the exact input that failed.
    """

    def __init__(self, message: str, line: Optional[str] = None):
        self.line = line
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)


class InvalidLineNumber(GbatError):
    """Raised when an Add or Change targets a line number below 1."""

    def __init__(self, line_number: int, operation: str = ""):
        self.line_number = line_number
        self.operation = operation
        prefix = f"{operation}: " if operation else ""
        super().__init__(f"{prefix}line number must be >= 1, got {line_number}")


class LedgerInvariantViolation(GbatError):
    """Raised when a ledger amount becomes NaN or negative."""

    def __init__(self, line_number: int, key: str, amount: float):
        self.line_number = line_number
        self.key = key
        self.amount = amount
        who = key.replace("\n", ", ") or "<safe>"
        super().__init__(
            f"Invalid knowledge amount {amount!r} for [{who}] at line {line_number}"
        )


class HistoryError(GbatError):
    """Raised when git history or file listing cannot be retrieved."""


class ConfigError(GbatError):
    """Raised when configuration values are invalid."""
