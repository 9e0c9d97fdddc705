"""
File discovery — Which tracked files are worth analyzing

A file is interesting when at least one "interesting" pattern matches
somewhere in its path and no "not interesting" pattern does. Patterns
are case-insensitive unless asked otherwise.
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence


DEFAULT_INTERESTING = [
    r"\.java$",
    r"\.cs$",
    r"\.py$",
    r"\.c$",
    r"\.cpp$",
    r"\.h$",
    r"\.hpp$",
    r"\.pl$",
    r"\.perl$",
    r"\.rb$",
    r"\.sh$",
    r"\.js$",
    r"\.kt$",
]


class FileFilter:
    """Compiled interesting / not-interesting path filter."""

    def __init__(
        self,
        interesting: Optional[Sequence[str]] = None,
        not_interesting: Optional[Sequence[str]] = None,
        case_sensitive: bool = False,
    ):
        flags = 0 if case_sensitive else re.IGNORECASE
        self.interesting: List[Pattern] = [
            re.compile(p, flags) for p in (interesting or DEFAULT_INTERESTING)
        ]
        self.not_interesting: List[Pattern] = [
            re.compile(p, flags) for p in (not_interesting or [])
        ]

    def is_interesting(self, path: str) -> bool:
        if not any(p.search(path) for p in self.interesting):
            return False
        return not any(p.search(path) for p in self.not_interesting)

    def select(self, paths: Iterable[str]) -> List[str]:
        return [path for path in paths if self.is_interesting(path)]
