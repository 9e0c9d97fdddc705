"""
OrchestratorConfig — Configuration for parallel file analysis

Loads parallelization settings from environment variables.
Provides sensible defaults that work on any machine.

Environment variables:
- GBAT_PARALLEL_ENABLED: Enable/disable parallelization (default: true)
- GBAT_ANALYZER_WORKERS: Number of files analyzed at once (default: 3)
- GBAT_USE_PROCESSES: Process pool instead of thread pool (default: true)
"""

import os
from dataclasses import dataclass

from ..errors import ConfigError


DEFAULT_WORKERS = 3


@dataclass
class OrchestratorConfig:
    """
    Configuration for the analysis orchestrator.

    Loaded from environment variables with sensible defaults.
    """

    # Feature toggle
    enabled: bool = True

    # Worker pool
    workers: int = DEFAULT_WORKERS
    use_processes: bool = True         # Replays are CPU-bound

    @classmethod
    def from_env(cls) -> 'OrchestratorConfig':
        return cls(
            enabled=_get_bool_env("GBAT_PARALLEL_ENABLED", True),
            workers=_get_int_env("GBAT_ANALYZER_WORKERS", DEFAULT_WORKERS),
            use_processes=_get_bool_env("GBAT_USE_PROCESSES", True),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if self.workers < 1:
            raise ConfigError("Number of analyzer workers must be >= 1")

    def to_dict(self) -> dict:
        """Serialize for display/logging."""
        return {
            "enabled": self.enabled,
            "workers": self.workers,
            "use_processes": self.use_processes,
        }


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key, "")
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return default
