"""
Git Repository — History retrieval for the analyzer

Wraps the three git calls the analysis needs:
- list tracked files under the project root
- find the repository root
- fetch one file's full patch history (following renames), oldest first

History is materialized text: a file's log is fetched completely before
its replay starts.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.analyzer import AuthorDiff, HistoryItem
from ..errors import HistoryError


logger = logging.getLogger(__name__)

DEFAULT_GIT_EXE = "git"

LOG_COMMAND = [
    "--no-pager",
    "log",
    "-z",            # NUL-separated entries
    "-w",            # Ignore all whitespace
    "--follow",      # Follow history through renames
    "--patience",    # Patience diff algorithm
    "-p",            # Show patches
]


def find_git(exe: str = DEFAULT_GIT_EXE) -> str:
    """
    Resolve a git executable to an absolute path.

    Raises:
        HistoryError: If the executable cannot be found
    """
    path = Path(exe)
    if path.is_file():
        return str(path.resolve())

    found = shutil.which(exe)
    if not found:
        raise HistoryError(f"Git executable not found: {exe}")
    return found


def parse_author(header: List[str]) -> str:
    """
    Extract the author name from a log entry header.

    The second header line reads `Author: Name Parts <email>`.
    """
    if len(header) < 2:
        return ""
    segments = header[1].split()
    return " ".join(segments[1:-1])


def split_entry_header(entry: str) -> Tuple[List[str], List[str]]:
    """
    Split one log entry into header lines and diff lines.

    Entries that do not start with `commit` / `Author` yield empty parts.
    """
    lines = entry.split("\n")
    if len(lines) < 2:
        return [], []
    if not lines[0].startswith("commit") or not lines[1].startswith("Author"):
        return [], []

    index = 2
    while index < len(lines) and not lines[index].startswith("diff"):
        index += 1
    return lines[:index], lines[index:]


def parse_log(output: str) -> List[AuthorDiff]:
    """
    Parse `git log -z -p` output into (author, diff) pairs, oldest first.

    Entries without an author or without a diff are dropped.
    """
    pairs: List[AuthorDiff] = []

    for entry in output.split("\0"):
        if not entry.strip():
            continue
        header, diff_lines = split_entry_header(entry.lstrip("\n"))
        author = parse_author(header).strip()
        diff = "\n".join(diff_lines)
        if author and diff:
            pairs.append((author, diff))

    pairs.reverse()
    return pairs


class GitRepository:
    """Read-only access to a project inside a git repository."""

    def __init__(self, project_root: Path, git_exe: str = DEFAULT_GIT_EXE):
        self.project_root = Path(project_root).resolve()
        self.git_exe = git_exe

    def _run_git(self, args: List[str]) -> str:
        """
        Run a git command in the project root and return stdout.

        Raises:
            HistoryError: If git cannot be started or exits non-zero
        """
        try:
            result = subprocess.run(
                [self.git_exe] + args,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise HistoryError(f"Could not run git: {e}") from e

        if result.returncode != 0:
            raise HistoryError(
                f"git {' '.join(args[:2])} failed: {result.stderr.strip()}"
            )
        if result.stderr.strip():
            logger.warning("git %s: %s", " ".join(args[:2]), result.stderr.strip())
        return result.stdout

    @property
    def is_git_repo(self) -> bool:
        try:
            self._run_git(["rev-parse", "--is-inside-work-tree"])
        except HistoryError:
            return False
        return True

    def root(self) -> Path:
        """Top-level directory of the repository."""
        return Path(self._run_git(["rev-parse", "--show-toplevel"]).strip())

    def ls(self) -> List[str]:
        """Tracked files under the project root, relative to it."""
        output = self._run_git(["ls-tree", "--name-only", "-r", "HEAD"])
        return [name for name in output.split("\n") if name.strip()]

    def log(self, file_name: Path) -> List[AuthorDiff]:
        """Full patch history of one file as (author, diff) pairs, oldest first."""
        path = Path(file_name)
        if not path.is_absolute():
            path = self.project_root / path
        return parse_log(self._run_git(LOG_COMMAND + ["--", str(path)]))

    def history(self, file_name: Path, repo_root: Optional[Path] = None) -> HistoryItem:
        """Fetch the history of one file, ready for replay."""
        logger.info("Parsing history for %s", file_name)
        return HistoryItem(
            repo_root=repo_root or self.root(),
            project_root=self.project_root,
            file_name=Path(file_name),
            author_diffs=self.log(file_name),
        )
