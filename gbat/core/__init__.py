"""
Core — Knowledge / line / risk simulation engine

Leaves first:
- diff: unified diff -> line events
- lines: line-number <-> text tracking
- risk: per-author bus risk and threshold decisions
- knowledge: knowledge ledger per (line, author set)
- analyzer: replay driver and per-line condensation
"""

from .events import ChangeType, Event
from .authors import AuthorSet, SAFE
from .diff import DiffParser, parse_diff, parse_hunk_header
from .lines import LineTracker
from .risk import RiskOracle, parse_departed, parse_overrides
from .knowledge import KnowledgeLedger, KNOWLEDGE_PER_LINE_ADDED
from .analyzer import Analyzer, Condensation, FileAnalysis, HistoryItem, analyze_history

__all__ = [
    'ChangeType', 'Event',
    'AuthorSet', 'SAFE',
    'DiffParser', 'parse_diff', 'parse_hunk_header',
    'LineTracker',
    'RiskOracle', 'parse_departed', 'parse_overrides',
    'KnowledgeLedger', 'KNOWLEDGE_PER_LINE_ADDED',
    'Analyzer', 'Condensation', 'FileAnalysis', 'HistoryItem', 'analyze_history',
]
