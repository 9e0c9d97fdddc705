"""
Tests for DiffParser — unified diff text to ordered line events

Covers hunk header decoding, replace-group stepping, context tracking,
empty new ranges and the "no newline" marker.
"""

import pytest

from gbat.core.diff import DiffParser, parse_diff, parse_hunk_header, split_chunks
from gbat.core.events import ChangeType, Event
from gbat.errors import ParseError
from tests.factories import DiffBuilder, new_file_diff, remove_line_diff, replace_line_diff


# =============================================================================
# Hunk headers
# =============================================================================

class TestHunkHeader:
    """Decoding `@@ -a,b +c,d @@` headers."""

    def test_full_ranges(self):
        assert parse_hunk_header("@@ -3,4 +5,6 @@") == (5, 6)

    def test_count_defaults_to_one(self):
        assert parse_hunk_header("@@ -1 +1 @@") == (1, 1)

    def test_section_heading_ignored(self):
        assert parse_hunk_header("@@ -10,2 +12,3 @@ def main():") == (12, 3)

    def test_empty_new_range(self):
        assert parse_hunk_header("@@ -1,2 +0,0 @@") == (0, 0)

    def test_unterminated_header_raises(self):
        with pytest.raises(ParseError):
            parse_hunk_header("@@ -1,2 +1,2")

    def test_missing_ranges_raises(self):
        with pytest.raises(ParseError):
            parse_hunk_header("@@ garbage @@")

    def test_non_numeric_offset_raises(self):
        with pytest.raises(ParseError) as exc:
            parse_hunk_header("@@ -1,2 +x,2 @@")
        assert exc.value.line == "@@ -1,2 +x,2 @@"


# =============================================================================
# Chunking
# =============================================================================

class TestSplitChunks:
    """Splitting diff text at hunk headers."""

    def test_preamble_dropped(self):
        diff = new_file_diff(["a"])
        chunks = split_chunks(diff)
        assert len(chunks) == 1
        assert chunks[0][0].startswith("@@")
        assert "+a" in chunks[0]

    def test_multiple_hunks(self):
        diff = (
            DiffBuilder()
            .hunk(1, 1, 1, 1, ["-a", "+A"])
            .hunk(10, 1, 10, 1, ["-b", "+B"])
            .build()
        )
        assert len(split_chunks(diff)) == 2

    def test_empty_diff(self):
        assert split_chunks("") == []


# =============================================================================
# Events
# =============================================================================

class TestParseDiff:
    """Event sequences produced for typical edits."""

    def test_new_file_adds_every_line(self):
        events = parse_diff(new_file_diff(["a", "b", "c"]))
        assert events == [
            Event.add(1, "a"),
            Event.add(2, "b"),
            Event.add(3, "c"),
        ]

    def test_replace_middle_line(self):
        events = parse_diff(replace_line_diff(["a", "b", "c"], 2, "B"))
        assert events == [Event.change(2, "B")]

    def test_remove_middle_line(self):
        events = parse_diff(remove_line_diff(["a", "b", "c"], 2))
        assert events == [Event.remove(2)]

    def test_successive_removes_target_same_slot(self):
        diff = DiffBuilder().hunk(1, 3, 1, 1, [" a", "-b", "-c"]).build()
        assert parse_diff(diff) == [Event.remove(2), Event.remove(2)]

    def test_more_new_than_old_lines(self):
        diff = DiffBuilder().hunk(1, 2, 1, 4, [" a", "-b", "+B1", "+B2", "+B3"]).build()
        assert parse_diff(diff) == [
            Event.change(2, "B1"),
            Event.add(3, "B2"),
            Event.add(4, "B3"),
        ]

    def test_more_old_than_new_lines(self):
        diff = DiffBuilder().hunk(1, 3, 1, 1, ["-a", "-b", "-c", "+X"]).build()
        assert parse_diff(diff) == [
            Event.change(1, "X"),
            Event.remove(2),
            Event.remove(2),
        ]

    def test_insertion_after_context(self):
        diff = DiffBuilder().hunk(1, 2, 1, 4, [" a", " b", "+x", "+y"]).build()
        assert parse_diff(diff) == [Event.add(3, "x"), Event.add(4, "y")]

    def test_context_between_groups(self):
        diff = DiffBuilder().hunk(1, 4, 1, 4, ["-a", "+A", " b", " c", "-d", "+D"]).build()
        assert parse_diff(diff) == [Event.change(1, "A"), Event.change(4, "D")]

    def test_hunk_offset_respected(self):
        diff = DiffBuilder().hunk(20, 3, 20, 3, [" a", "-b", "+B", " c"]).build()
        assert parse_diff(diff) == [Event.change(21, "B")]

    def test_empty_new_range_starts_after_named_line(self):
        # Deleting old lines 3-4 reports the new range as +2,0
        diff = DiffBuilder().hunk(3, 2, 2, 0, ["-c", "-d"]).build()
        assert parse_diff(diff) == [Event.remove(3), Event.remove(3)]

    def test_delete_whole_file(self):
        diff = DiffBuilder().hunk(1, 2, 0, 0, ["-a", "-b"]).build()
        assert parse_diff(diff) == [Event.remove(1), Event.remove(1)]

    def test_no_newline_marker_skipped(self):
        diff = DiffBuilder().hunk(
            1, 1, 1, 1, ["-a", "\\ No newline at end of file", "+A"]
        ).build()
        assert parse_diff(diff) == [Event.change(1, "A")]

    def test_marker_does_not_advance_counter(self):
        diff = DiffBuilder().hunk(
            1, 2, 1, 3, [" a", "\\ No newline at end of file", "+b"]
        ).build()
        assert parse_diff(diff) == [Event.add(2, "b")]

    def test_text_keeps_inner_prefix_characters(self):
        events = parse_diff(new_file_diff(["-- comment", "++i;"]))
        assert [e.text for e in events] == ["-- comment", "++i;"]

    def test_empty_diff_yields_nothing(self):
        assert parse_diff("") == []

    def test_rename_without_hunks_yields_nothing(self):
        diff = "diff --git a/old.py b/new.py\nsimilarity index 100%\nrename from old.py\nrename to new.py\n"
        assert parse_diff(diff) == []

    def test_bad_header_raises(self):
        diff = "diff --git a/f b/f\n@@ -1,1 +a,b @@\n-x\n+y\n"
        with pytest.raises(ParseError):
            parse_diff(diff)

    def test_parser_object_delegates(self):
        diff = new_file_diff(["a"])
        assert DiffParser().parse(diff) == parse_diff(diff)


class TestEvents:
    """Event value objects."""

    def test_remove_has_no_text(self):
        event = Event.remove(3)
        assert event.kind == ChangeType.REMOVE
        assert event.text is None

    def test_events_are_immutable(self):
        event = Event.add(1, "x")
        with pytest.raises(AttributeError):
            event.line_number = 2

    def test_str(self):
        assert str(Event.change(4, "x")) == "change@4: x"
        assert str(Event.remove(2)) == "remove@2"
