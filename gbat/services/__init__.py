"""
Services — External integration layer for gbat

Contains integrations with external systems:
- Git: history retrieval and file listing
- Discovery: interesting-file selection
- Summary: SQLite aggregation of per-file analyses
"""

from .git import GitRepository, find_git, parse_log
from .discovery import FileFilter, DEFAULT_INTERESTING
from .summary import SummaryStore, Statistics, ProjectFile, AuthorRisk

__all__ = [
    # Git
    "GitRepository", "find_git", "parse_log",
    # Discovery
    "FileFilter", "DEFAULT_INTERESTING",
    # Summary
    "SummaryStore", "Statistics", "ProjectFile", "AuthorRisk",
]
