"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Command-line arguments (applied by the CLI)
  2. Project config (<project>/.gbat/config.yaml)
  3. User config (~/.gbat/config.yaml)
  4. Environment variables
  5. Defaults
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core.risk import DEFAULT_BUS_RISK
from .core.analyzer import DEFAULT_CREATION_CONSTANT
from .orchestrator.config import DEFAULT_WORKERS, OrchestratorConfig
from .services.discovery import DEFAULT_INTERESTING


logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "output"

# Environment variable -> (section, setting, type)
ENV_OVERRIDES = {
    "GBAT_DEFAULT_BUS_RISK": ("risk", "default_bus_risk", float),
    "GBAT_RISK_THRESHOLD": ("risk", "risk_threshold", float),
    "GBAT_CREATION_CONSTANT": ("analysis", "creation_constant", float),
    "GBAT_ANALYZER_WORKERS": ("analysis", "workers", int),
    "GBAT_PARALLEL_ENABLED": ("analysis", "parallel", bool),
    "GBAT_USE_PROCESSES": ("analysis", "use_processes", bool),
    "GBAT_GIT_EXE": ("git", "exe", str),
}


@dataclass
class RiskConfig:
    """Bus-risk model settings."""
    default_bus_risk: float = DEFAULT_BUS_RISK
    risk_threshold: Optional[float] = None  # None = default_bus_risk cubed
    departed_file: Optional[str] = None
    bus_risk_file: Optional[str] = None

    @property
    def effective_threshold(self) -> float:
        if self.risk_threshold is not None:
            return self.risk_threshold
        return self.default_bus_risk ** 3

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not 0.0 <= self.default_bus_risk <= 1.0:
            return f"Default bus risk must be between 0 and 1, got {self.default_bus_risk}"
        if self.risk_threshold is not None and not 0.0 <= self.risk_threshold <= 1.0:
            return f"Risk threshold must be between 0 and 1, got {self.risk_threshold}"
        for label, path in (("Departed file", self.departed_file),
                            ("Bus risk file", self.bus_risk_file)):
            if path and not Path(path).is_file():
                return f"{label} does not exist: {path}"
        return None


@dataclass
class AnalysisConfig:
    """Replay and parallelism settings."""
    creation_constant: float = DEFAULT_CREATION_CONSTANT
    workers: int = DEFAULT_WORKERS
    parallel: bool = True
    use_processes: bool = True

    def orchestrator_config(self) -> OrchestratorConfig:
        return OrchestratorConfig(
            enabled=self.parallel,
            workers=self.workers,
            use_processes=self.use_processes,
        )

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not 0.0 <= self.creation_constant <= 1.0:
            return f"Knowledge creation constant must be between 0 and 1, got {self.creation_constant}"
        if self.workers < 1:
            return f"Number of analyzer workers must be >= 1, got {self.workers}"
        return None


@dataclass
class FilesConfig:
    """Interesting-file selection."""
    interesting: List[str] = field(default_factory=lambda: list(DEFAULT_INTERESTING))
    not_interesting: List[str] = field(default_factory=list)
    case_sensitive: bool = False


@dataclass
class GitConfig:
    exe: str = "git"


@dataclass
class OutputConfig:
    directory: str = DEFAULT_OUTPUT_DIR


@dataclass
class Config:
    """Application configuration."""
    risk: RiskConfig = field(default_factory=RiskConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    files: FilesConfig = field(default_factory=FilesConfig)
    git: GitConfig = field(default_factory=GitConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> Optional[str]:
        """First validation error across sections, or None."""
        return self.risk.validate() or self.analysis.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "risk": {
                "default_bus_risk": self.risk.default_bus_risk,
                "risk_threshold": self.risk.risk_threshold,
                "departed_file": self.risk.departed_file,
                "bus_risk_file": self.risk.bus_risk_file,
            },
            "analysis": {
                "creation_constant": self.analysis.creation_constant,
                "workers": self.analysis.workers,
                "parallel": self.analysis.parallel,
                "use_processes": self.analysis.use_processes,
            },
            "files": {
                "interesting": list(self.files.interesting),
                "not_interesting": list(self.files.not_interesting),
                "case_sensitive": self.files.case_sensitive,
            },
            "git": {
                "exe": self.git.exe,
            },
            "output": {
                "directory": self.output.directory,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        risk_data = data.get("risk", {})
        analysis_data = data.get("analysis", {})
        files_data = data.get("files", {})
        git_data = data.get("git", {})
        output_data = data.get("output", {})

        return cls(
            risk=RiskConfig(
                default_bus_risk=float(risk_data.get("default_bus_risk", DEFAULT_BUS_RISK)),
                risk_threshold=_optional_float(risk_data.get("risk_threshold")),
                departed_file=risk_data.get("departed_file"),
                bus_risk_file=risk_data.get("bus_risk_file"),
            ),
            analysis=AnalysisConfig(
                creation_constant=float(analysis_data.get("creation_constant", DEFAULT_CREATION_CONSTANT)),
                workers=int(analysis_data.get("workers", DEFAULT_WORKERS)),
                parallel=bool(analysis_data.get("parallel", True)),
                use_processes=bool(analysis_data.get("use_processes", True)),
            ),
            files=FilesConfig(
                interesting=list(files_data.get("interesting") or DEFAULT_INTERESTING),
                not_interesting=list(files_data.get("not_interesting") or []),
                case_sensitive=bool(files_data.get("case_sensitive", False)),
            ),
            git=GitConfig(exe=git_data.get("exe", "git")),
            output=OutputConfig(directory=output_data.get("directory", DEFAULT_OUTPUT_DIR)),
        )


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _parse_env_value(value: str, kind: type) -> Any:
    if kind is bool:
        return value.lower() in ("true", "1", "yes", "on")
    return kind(value)


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Project config (.gbat/config.yaml)
      2. User config (~/.gbat/config.yaml)
      3. Environment variables
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".gbat"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".gbat"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        # Layer 1: Environment
        config_data: Dict[str, Any] = self._env_data()

        # Layer 2: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 3: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        self._config = Config.from_dict(config_data)
        return self._config

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", path)
            return {}
        return data

    def _env_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for key, (section, setting, kind) in ENV_OVERRIDES.items():
            value = os.environ.get(key)
            if not value:
                continue
            try:
                data.setdefault(section, {})[setting] = _parse_env_value(value, kind)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a valid %s", key, value, kind.__name__)
        return data

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
