"""
KnowledgeLedger — Knowledge per (line, author set) for one file

Knowledge is measured in units of KNOWLEDGE_PER_LINE_ADDED per fully
attributed line. Three operations move it around:

- add:    a new line creates a full unit owned by its author
- remove: the line's knowledge is destroyed outright
- change: the editor creates c * unit of their own knowledge and
          acquires (1 - c) * unit from everyone else, spread over the
          line's existing accounts in proportion to their share

Acquired knowledge moves into the account of (source authors + editor),
or into the SAFE account once that group's joint bus probability is
negligible. Knowledge whose authors have all departed is handed to the
editor alone. A departed editor never teaches anyone.

Invariants:
- amounts are never negative or NaN (checked after every operation)
- a removed line has no entries until a line is added there again
- accounts are keyed by canonical author-set key, never by creation order
"""

import math
from typing import Dict, List, Tuple

from .authors import AuthorSet, SAFE
from .events import ChangeType, Event
from .risk import RiskOracle
from ..errors import InvalidLineNumber, LedgerInvariantViolation


KNOWLEDGE_PER_LINE_ADDED = 1000.0

LineAccounts = Dict[str, float]


class KnowledgeLedger:
    """Running knowledge ledger for one file's replay."""

    def __init__(self, risk: RiskOracle, constant: float = 0.1):
        if not 0.0 <= constant <= 1.0:
            raise ValueError(f"Knowledge creation constant must be in [0, 1], got {constant}")

        self.risk = risk
        self.constant = constant
        self._accounts: Dict[str, AuthorSet] = {SAFE.key: SAFE}
        self._lines: Dict[int, LineAccounts] = {}

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def account(self, authors: AuthorSet) -> str:
        """Look up or create the account for an author set; returns its key."""
        return self._accounts.setdefault(authors.key, authors).key

    @property
    def accounts(self) -> List[AuthorSet]:
        return [self._accounts[key] for key in sorted(self._accounts)]

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def apply(self, event: Event, author: str) -> None:
        if event.kind == ChangeType.ADD:
            self.record_add(author, event.line_number)
        elif event.kind == ChangeType.CHANGE:
            self.record_change(author, event.line_number)
        else:
            self.record_remove(event.line_number)

    def record_add(self, author: str, line_number: int) -> None:
        if line_number < 1:
            raise InvalidLineNumber(line_number, "add")

        key = self.account(AuthorSet((author,)))
        self._shift_from(line_number - 1, 1)
        self._adjust(key, line_number, KNOWLEDGE_PER_LINE_ADDED)
        self._check_line(line_number)

    def record_remove(self, line_number: int) -> None:
        if line_number < 1:
            return

        self._lines.pop(line_number, None)
        self._shift_from(line_number, -1)

    def record_change(self, author: str, line_number: int) -> None:
        if line_number < 1:
            raise InvalidLineNumber(line_number, "change")

        k_created = self.constant * KNOWLEDGE_PER_LINE_ADDED
        k_acquired = (1 - self.constant) * KNOWLEDGE_PER_LINE_ADDED

        total = self.total_at(line_number)
        if total > 0:
            acquired_pct = k_acquired / total
        else:
            acquired_pct = 0.0

        self._redistribute(author, line_number, acquired_pct)

        key = self.account(AuthorSet((author,)))
        self._adjust(key, line_number, k_created)
        self._check_line(line_number)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def total_at(self, line_number: int) -> float:
        return sum(self._lines.get(line_number, {}).values())

    def query_line(self, line_number: int) -> List[Tuple[AuthorSet, float]]:
        """Non-zero accounts at a line, ordered by canonical key."""
        entries = self._lines.get(line_number, {})
        return [
            (self._accounts[key], entries[key])
            for key in sorted(entries)
            if entries[key] != 0.0
        ]

    def line_numbers(self) -> List[int]:
        return sorted(self._lines)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _redistribute(self, author: str, line_number: int, acquired_pct: float) -> None:
        if self.risk.is_departed(author):
            return

        entries = self._lines.get(line_number, {})
        sources = [key for key in sorted(entries) if key != SAFE.key]

        for source_key in sources:
            source = self._accounts[source_key]
            if author in source:
                continue

            if self.risk.all_departed(source):
                target = AuthorSet((author,))
            else:
                target = source.with_author(author)

            if self.risk.below_threshold(target):
                target_key = SAFE.key
            else:
                target_key = self.account(target)

            held = entries[source_key]
            amount = min(held * acquired_pct, held)
            if amount <= 0.0:
                continue

            self._adjust(source_key, line_number, -amount)
            self._adjust(target_key, line_number, amount)

    def _adjust(self, key: str, line_number: int, adjustment: float) -> None:
        entries = self._lines.setdefault(line_number, {})
        entries[key] = max(entries.get(key, 0.0) + adjustment, 0.0)

    def _shift_from(self, pivot: int, adjustment: int) -> None:
        """Move every line numbered above pivot by adjustment, leaving the rest in place."""
        moving = sorted((num for num in self._lines if num > pivot), reverse=adjustment > 0)
        for num in moving:
            self._lines[num + adjustment] = self._lines.pop(num)

    def _check_line(self, line_number: int) -> None:
        for key, amount in self._lines.get(line_number, {}).items():
            if math.isnan(amount) or amount < 0.0:
                raise LedgerInvariantViolation(line_number, key, amount)
