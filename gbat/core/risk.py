"""
RiskOracle — Per-author departure risk and joint bus probability

Built once per run from two plain-text sources and read-only afterwards,
so it is shared by every file's replay (and pickled to process workers).

Sources:
- departed authors: one name per non-blank line
- risk overrides: one `author=probability` per non-blank line

Departed authors always have risk 1.0, whatever the overrides say.
"""

import math
from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from ..errors import ParseError


DEFAULT_BUS_RISK = 0.1

# Relative slack on the inclusive threshold comparison, so that
# 0.1 * 0.1 * 0.1 still counts as <= 0.001.
THRESHOLD_REL_TOL = 1e-9


def parse_departed(text: str) -> Set[str]:
    """Parse a departed-authors list (one name per non-blank line)."""
    return {line.strip() for line in text.splitlines() if line.strip()}


def parse_overrides(text: str) -> Dict[str, float]:
    """
    Parse `author=probability` lines.

    The split happens at the last '=', so author names may contain '='.

    Raises:
        ParseError: On a line without '=', a non-numeric probability,
            or a probability outside [0, 1]
    """
    overrides: Dict[str, float] = {}

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        author, sep, value = line.rpartition("=")
        if not sep:
            raise ParseError("Risk override is not of the form author=probability", line)

        try:
            risk = float(value.strip())
        except ValueError:
            raise ParseError("Non-numeric risk override", line) from None

        if math.isnan(risk) or not 0.0 <= risk <= 1.0:
            raise ParseError("Risk override must be between 0 and 1", line)

        overrides[author.strip()] = risk

    return overrides


class RiskOracle:
    """
    Risk lookups and threshold decisions for author sets.

    The threshold defaults to the default risk cubed: three independent
    average authors leaving at once is considered negligible.
    """

    def __init__(
        self,
        default_risk: float = DEFAULT_BUS_RISK,
        threshold: Optional[float] = None,
        departed: Iterable[str] = (),
        overrides: Optional[Dict[str, float]] = None,
    ):
        self.default_risk = default_risk
        self.threshold = threshold if threshold is not None else default_risk ** 3
        self.departed = frozenset(name.strip() for name in departed if name.strip())
        self.overrides = dict(overrides or {})

    @classmethod
    def from_text(
        cls,
        default_risk: float = DEFAULT_BUS_RISK,
        threshold: Optional[float] = None,
        departed_text: str = "",
        overrides_text: str = "",
    ) -> 'RiskOracle':
        return cls(
            default_risk=default_risk,
            threshold=threshold,
            departed=parse_departed(departed_text),
            overrides=parse_overrides(overrides_text),
        )

    @classmethod
    def from_files(
        cls,
        default_risk: float = DEFAULT_BUS_RISK,
        threshold: Optional[float] = None,
        departed_file: Optional[Path] = None,
        bus_risk_file: Optional[Path] = None,
    ) -> 'RiskOracle':
        """Build from optional files; a missing argument means an empty source."""
        departed_text = Path(departed_file).read_text() if departed_file else ""
        overrides_text = Path(bus_risk_file).read_text() if bus_risk_file else ""
        return cls.from_text(default_risk, threshold, departed_text, overrides_text)

    def risk(self, author: str) -> float:
        name = author.strip()
        if not name:
            # Anonymous stands for the SAFE account
            return self.threshold
        if name in self.departed:
            return 1.0
        return self.overrides.get(name, self.default_risk)

    def is_departed(self, author: str) -> bool:
        return author.strip() in self.departed

    def all_departed(self, authors: Iterable[str]) -> bool:
        return all(self.is_departed(author) for author in authors)

    def joint_probability(self, authors: Iterable[str]) -> float:
        """Probability that every author leaves; 1.0 for no authors."""
        probability = 1.0
        for author in authors:
            probability *= self.risk(author)
        return probability

    def below_threshold(self, authors: Iterable[str]) -> bool:
        joint = self.joint_probability(authors)
        return joint <= self.threshold or math.isclose(
            joint, self.threshold, rel_tol=THRESHOLD_REL_TOL
        )

    def to_dict(self) -> dict:
        """Serialize for display/logging."""
        return {
            "default_risk": self.default_risk,
            "threshold": self.threshold,
            "departed": sorted(self.departed),
            "overrides": dict(sorted(self.overrides.items())),
        }
