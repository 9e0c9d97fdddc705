"""
DiffParser — Turns one historical change into line-level events

Input is a unified diff for a single file (as printed by `git log -p`),
output is the ordered list of Add / Change / Remove events that replays
the change line by line.

Only the new-file offset of each hunk header matters: the first hunk's
old and new offsets agree, and since events are applied as they are
produced, the running counter stays in step with the new offsets.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from .events import Event
from ..errors import ParseError


HUNK_MARKER = "@@"


@dataclass
class _Group:
    """Contiguous run of removed (-) and added (+) lines inside a hunk."""
    line_number: int
    old: List[str] = field(default_factory=list)
    new: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.old or self.new)


def parse_hunk_header(header: str) -> Tuple[int, int]:
    """
    Parse the new-file range from a hunk header.

    Format: @@ -old_start[,old_count] +new_start[,new_count] @@ [section]

    Returns:
        (new_start, new_count); new_count defaults to 1 when omitted

    Raises:
        ParseError: If the header is malformed or the offsets are not numeric
    """
    parts = header.split(HUNK_MARKER)
    if len(parts) < 3:
        raise ParseError("Unterminated hunk header", header)

    ranges = parts[1].split()
    if len(ranges) < 2 or not ranges[0].startswith("-") or not ranges[1].startswith("+"):
        raise ParseError("Hunk header has no old/new ranges", header)

    start, _, count = ranges[1][1:].partition(",")
    try:
        new_start = abs(int(start))
        new_count = abs(int(count)) if count else 1
    except ValueError:
        raise ParseError("Non-numeric offset in hunk header", header) from None

    return new_start, new_count


def split_chunks(diff: str) -> List[List[str]]:
    """
    Split diff text into chunks, each starting with its hunk header.

    Lines before the first header (diff --git, index, ---, +++) are dropped.
    """
    chunks: List[List[str]] = []
    current: List[str] = []

    for line in diff.split("\n"):
        if line.startswith(HUNK_MARKER):
            if current:
                chunks.append(current)
            current = [line]
        elif current:
            current.append(line)

    if current:
        chunks.append(current)
    return chunks


def _group_chunk(body: List[str], first_line: int) -> List[_Group]:
    groups: List[_Group] = []
    current = _Group(first_line)
    line_number = first_line

    for line in body:
        if line.startswith("-"):
            current.old.append(line[1:])
        elif line.startswith("+"):
            current.new.append(line[1:])
        elif line.startswith("\\"):
            # "\ No newline at end of file"
            continue
        elif current:
            groups.append(current)
            line_number = current.line_number + len(current.new) + 1
            current = _Group(line_number)
        else:
            line_number += 1
            current = _Group(line_number)

    if current:
        groups.append(current)
    return groups


def _step_group(group: _Group, events: List[Event]) -> None:
    old_len = len(group.old)
    new_len = len(group.new)
    line_number = group.line_number

    for i in range(max(old_len, new_len)):
        if i < old_len and i < new_len:
            events.append(Event.change(line_number, group.new[i]))
            line_number += 1
        elif i < old_len:
            # Later lines shift up into the same slot
            events.append(Event.remove(line_number))
        else:
            events.append(Event.add(line_number, group.new[i]))
            line_number += 1


def parse_diff(diff: str) -> List[Event]:
    """
    Parse one unified diff into ordered line events.

    An empty diff (e.g. a pure rename) yields no events.

    Raises:
        ParseError: On an undecodable hunk header
    """
    events: List[Event] = []

    for chunk in split_chunks(diff):
        new_start, new_count = parse_hunk_header(chunk[0])
        # An empty new range names the line before it
        first_line = new_start + 1 if new_count == 0 else new_start
        for group in _group_chunk(chunk[1:], first_line):
            _step_group(group, events)

    return events


class DiffParser:
    """Stateless parser object, for callers that inject collaborators."""

    def parse(self, diff: str) -> List[Event]:
        return parse_diff(diff)
