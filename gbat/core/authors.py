"""
AuthorSet — Canonical set of author names identifying a knowledge account

Canonical form: trimmed, deduplicated, sorted names. The canonical key
(members joined by newline) is the account lookup key, so {"b", "a"}
and {"a", "b"} always resolve to the same account.

The SAFE set holds only the anonymous name "" and has the empty key.
Building a set from no names yields SAFE.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple, Union


KEY_SEPARATOR = "\n"
ANONYMOUS = ""


def canonicalize(names: Iterable[str]) -> Tuple[str, ...]:
    """Trim, deduplicate and sort names; an empty result is the SAFE tuple."""
    cleaned = {name.strip() for name in names}
    cleaned.discard(ANONYMOUS)
    return tuple(sorted(cleaned)) or (ANONYMOUS,)


@dataclass(frozen=True)
class AuthorSet:
    members: Tuple[str, ...]

    def __init__(self, members: Union[str, Iterable[str]] = ()):
        if isinstance(members, str):
            members = (members,)
        object.__setattr__(self, "members", canonicalize(members))

    @classmethod
    def of(cls, *names: str) -> 'AuthorSet':
        return cls(names)

    @classmethod
    def from_key(cls, key: str) -> 'AuthorSet':
        return cls(key.split(KEY_SEPARATOR))

    @property
    def key(self) -> str:
        return KEY_SEPARATOR.join(self.members)

    @property
    def is_safe(self) -> bool:
        return self.members == (ANONYMOUS,)

    def with_author(self, author: str) -> 'AuthorSet':
        if self.is_safe:
            return AuthorSet((author,))
        return AuthorSet(self.members + (author,))

    def __contains__(self, author: object) -> bool:
        return isinstance(author, str) and author.strip() in self.members

    def __iter__(self) -> Iterator[str]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __str__(self) -> str:
        if self.is_safe:
            return "<safe>"
        return ", ".join(self.members)


SAFE = AuthorSet()
