"""
Events — Line-level edit events produced from historical diffs

An Event is immutable. The line number always refers to the file state
at the moment the event is applied, so events must be replayed in order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChangeType(Enum):
    """Kind of line-level edit."""
    ADD = "add"
    CHANGE = "change"
    REMOVE = "remove"


@dataclass(frozen=True)
class Event:
    kind: ChangeType
    line_number: int
    text: Optional[str] = None  # None for removals

    @classmethod
    def add(cls, line_number: int, text: str) -> 'Event':
        return cls(ChangeType.ADD, line_number, text)

    @classmethod
    def change(cls, line_number: int, text: str) -> 'Event':
        return cls(ChangeType.CHANGE, line_number, text)

    @classmethod
    def remove(cls, line_number: int) -> 'Event':
        return cls(ChangeType.REMOVE, line_number, None)

    def __str__(self) -> str:
        if self.text is None:
            return f"{self.kind.value}@{self.line_number}"
        return f"{self.kind.value}@{self.line_number}: {self.text}"
