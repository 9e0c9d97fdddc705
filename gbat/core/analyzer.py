"""
Analyzer — Replays a file's history and condenses per-line results

For each historical (author, diff) pair, oldest first, every event is
applied to the LineTracker and then to the KnowledgeLedger at the same
line number, so both agree on final positions. After the replay each
final line gets a ranked list of Condensations:

    (authors, knowledge, orphaned, risk)

where orphaned is the knowledge whose authors have all departed and risk
is the knowledge weighted by the group's joint bus probability.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple

from .authors import AuthorSet
from .diff import parse_diff
from .knowledge import KnowledgeLedger
from .lines import LineTracker
from .risk import RiskOracle


DEFAULT_CREATION_CONSTANT = 0.1

AuthorDiff = Tuple[str, str]


@dataclass(frozen=True)
class Condensation:
    authors: AuthorSet
    knowledge: float
    orphaned: float
    risk: float = 0.0

    def sort_key(self) -> tuple:
        # Same size first, so tuple order is a pairwise name comparison
        return (len(self.authors), self.authors.members, self.knowledge, self.orphaned, self.risk)

    def to_dict(self) -> dict:
        return {
            "authors": list(self.authors.members),
            "knowledge": self.knowledge,
            "orphaned": self.orphaned,
            "risk": self.risk,
        }


LineSummary = Tuple[str, List[Condensation]]


@dataclass
class HistoryItem:
    """A file's full history, oldest first, as delivered by history retrieval."""
    repo_root: Path
    project_root: Path
    file_name: Path
    author_diffs: List[AuthorDiff] = field(default_factory=list)


@dataclass
class FileAnalysis:
    """Condensed replay result for one file."""
    repo_root: Path
    project_root: Path
    file_name: Path
    lines: List[LineSummary] = field(default_factory=list)

    @property
    def total_knowledge(self) -> float:
        return sum(c.knowledge for _, conds in self.lines for c in conds)

    @property
    def total_risk(self) -> float:
        return sum(c.risk for _, conds in self.lines for c in conds)

    @property
    def total_orphaned(self) -> float:
        return sum(c.orphaned for _, conds in self.lines for c in conds)


class Analyzer:
    """
    Drives one replay. Not reusable: each instance owns a fresh
    LineTracker / KnowledgeLedger pair.
    """

    def __init__(self, risk: RiskOracle, constant: float = DEFAULT_CREATION_CONSTANT):
        self.risk = risk
        self.lines = LineTracker()
        self.ledger = KnowledgeLedger(risk, constant)

    def replay(self, author: str, diff: str) -> None:
        """Apply one historical change."""
        author = author.strip()
        for event in parse_diff(diff):
            self.lines.apply(event)
            self.ledger.apply(event, author)

    def replay_all(self, history: Iterable[AuthorDiff]) -> None:
        for author, diff in history:
            self.replay(author, diff)

    def condense(self) -> List[LineSummary]:
        """Ranked per-line condensations for the current state."""
        summaries: List[LineSummary] = []

        for index, text in enumerate(self.lines.snapshot()):
            condensations = [
                self.condense_account(authors, knowledge)
                for authors, knowledge in self.ledger.query_line(index + 1)
            ]
            condensations.sort(key=Condensation.sort_key)
            summaries.append((text, condensations))

        return summaries

    def condense_account(self, authors: AuthorSet, knowledge: float) -> Condensation:
        orphaned = knowledge if self.risk.all_departed(authors) else 0.0
        risk = self.risk.joint_probability(authors) * knowledge
        return Condensation(authors, knowledge, orphaned, risk)

    def analyze(self, history: Iterable[AuthorDiff]) -> List[LineSummary]:
        self.replay_all(history)
        return self.condense()


def analyze_history(
    item: HistoryItem,
    risk: RiskOracle,
    constant: float = DEFAULT_CREATION_CONSTANT,
) -> FileAnalysis:
    """
    Replay one file's history into a FileAnalysis.

    Module-level so it can be shipped to process pools.
    """
    analyzer = Analyzer(risk, constant)
    return FileAnalysis(
        repo_root=item.repo_root,
        project_root=item.project_root,
        file_name=item.file_name,
        lines=analyzer.analyze(item.author_diffs),
    )

