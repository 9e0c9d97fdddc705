"""
Shared pytest fixtures for the gbat test suite.

Usage in tests:
    def test_something(ledger):
        ledger.record_add("alice", 1)

    def test_with_repo(git_repo):
        git_repo.commit("alice", {"app.py": "x\\n"})
"""

import subprocess

import pytest

from gbat.core.analyzer import Analyzer
from gbat.core.knowledge import KnowledgeLedger
from gbat.core.risk import RiskOracle
from tests.factories import GitRepoFactory, git_is_available


@pytest.fixture
def risk():
    """Default risk model: 0.1 per author, threshold 0.001, nobody departed."""
    return RiskOracle()


@pytest.fixture
def ledger(risk):
    """Empty ledger with creation constant 0.1."""
    return KnowledgeLedger(risk, constant=0.1)


@pytest.fixture
def analyzer(risk):
    return Analyzer(risk, constant=0.1)


@pytest.fixture
def git_repo(tmp_path):
    """
    Create an empty temporary git repository.

    Skips the test when git is unavailable.
    """
    if not git_is_available():
        pytest.skip("Git is not available")
    try:
        return GitRepoFactory(tmp_path / "repo")
    except subprocess.CalledProcessError:
        pytest.skip("Could not create git repository")
