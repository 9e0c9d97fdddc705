"""
LineTracker — Current line-number to text mapping for one file

Created fresh per file and mutated only while that file's history is
replayed. The final snapshot defines the line index space the Analyzer
queries the ledger with.
"""

from typing import Dict, List

from .events import ChangeType, Event
from ..errors import InvalidLineNumber


class LineTracker:
    """Line texts keyed by their current 1-based line number."""

    def __init__(self):
        self._lines: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def add(self, line_number: int, text: str) -> None:
        """Insert a line, shifting every line at or after it down by one."""
        if line_number < 1:
            raise InvalidLineNumber(line_number, "add")

        self._shift(line_number - 1, 1)
        self._lines[line_number] = text

    def remove(self, line_number: int) -> None:
        """
        Delete a line, shifting every later line up by one.

        Removing a line that is not tracked is tolerated.
        """
        if line_number < 1:
            return

        self._lines.pop(line_number, None)
        self._shift(line_number, -1)

    def change(self, line_number: int, text: str) -> None:
        """Replace a line's text in place (inserting it if absent)."""
        if line_number < 1:
            raise InvalidLineNumber(line_number, "change")
        self._lines[line_number] = text

    def apply(self, event: Event) -> None:
        if event.kind == ChangeType.ADD:
            self.add(event.line_number, event.text or "")
        elif event.kind == ChangeType.CHANGE:
            self.change(event.line_number, event.text or "")
        else:
            self.remove(event.line_number)

    def text_at(self, line_number: int) -> str:
        return self._lines.get(line_number, "")

    def snapshot(self) -> List[str]:
        """Current texts in ascending line order."""
        return [self._lines[num] for num in sorted(self._lines)]

    def _shift(self, pivot: int, adjustment: int) -> None:
        """Move every line numbered above pivot by adjustment, leaving the rest in place."""
        moving = sorted((num for num in self._lines if num > pivot), reverse=adjustment > 0)
        for num in moving:
            self._lines[num + adjustment] = self._lines.pop(num)
