r"""
Gbat — Git by a Bus

Estimates who understands each line of a project and how much of that
understanding is at risk if developers leave.

Usage:
    gbat path/to/project
    gbat -D departed.txt --bus-risk-file risks.txt path/to/project
    gbat -I '\.py$' -N 'test' --num-analyzer-procs 4 path/to/project
"""

__version__ = "0.1.0"

# Core layer (simulation)
from .core.events import ChangeType, Event
from .core.authors import AuthorSet, SAFE
from .core.diff import DiffParser, parse_diff
from .core.lines import LineTracker
from .core.risk import RiskOracle
from .core.knowledge import KnowledgeLedger
from .core.analyzer import Analyzer, Condensation, FileAnalysis, HistoryItem, analyze_history

# Services layer
from .services.git import GitRepository, find_git, parse_log
from .services.discovery import FileFilter
from .services.summary import SummaryStore

# Presentation layer
from .output.render import SummaryRenderer

# Config (stays at root)
from .config import Config, ConfigManager, get_config
from .errors import GbatError, ParseError, InvalidLineNumber, LedgerInvariantViolation, HistoryError, ConfigError

from .pipeline import run_analysis, RunReport

__all__ = [
    # Core
    'ChangeType', 'Event',
    'AuthorSet', 'SAFE',
    'DiffParser', 'parse_diff',
    'LineTracker',
    'RiskOracle',
    'KnowledgeLedger',
    'Analyzer', 'Condensation', 'FileAnalysis', 'HistoryItem', 'analyze_history',
    # Services
    'GitRepository', 'find_git', 'parse_log',
    'FileFilter',
    'SummaryStore',
    # Presentation
    'SummaryRenderer',
    # Config
    'Config', 'ConfigManager', 'get_config',
    # Errors
    'GbatError', 'ParseError', 'InvalidLineNumber', 'LedgerInvariantViolation',
    'HistoryError', 'ConfigError',
    # Pipeline
    'run_analysis', 'RunReport',
]
