"""
Tests for Config — layered configuration

These tests validate:
- Config hierarchy (project > user > env > defaults)
- Section validation messages
- YAML round trip
"""

import pytest
import yaml

from gbat.config import (
    AnalysisConfig, Config, ConfigManager, RiskConfig, get_config,
)
from gbat.services.discovery import DEFAULT_INTERESTING


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Point the user config at an empty temp location and clear GBAT_* env."""
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", tmp_path / "home" / "config.yaml")
    for key in (
        "GBAT_DEFAULT_BUS_RISK", "GBAT_RISK_THRESHOLD", "GBAT_CREATION_CONSTANT",
        "GBAT_ANALYZER_WORKERS", "GBAT_PARALLEL_ENABLED", "GBAT_USE_PROCESSES", "GBAT_GIT_EXE",
    ):
        monkeypatch.delenv(key, raising=False)


def write_yaml(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))


class TestRiskConfig:
    """Bus-risk settings."""

    def test_threshold_defaults_to_cube(self):
        """Threshold is the default risk cubed when unset."""
        assert RiskConfig(default_bus_risk=0.2).effective_threshold == pytest.approx(0.008)

    def test_explicit_threshold(self):
        assert RiskConfig(risk_threshold=0.05).effective_threshold == 0.05

    def test_validate_range(self):
        error = RiskConfig(default_bus_risk=1.5).validate()
        assert error is not None
        assert "between 0 and 1" in error

    def test_validate_missing_file(self, tmp_path):
        error = RiskConfig(departed_file=str(tmp_path / "nope.txt")).validate()
        assert "does not exist" in error

    def test_validate_valid(self):
        assert RiskConfig().validate() is None


class TestAnalysisConfig:

    def test_validate_constant(self):
        assert AnalysisConfig(creation_constant=-0.1).validate() is not None

    def test_validate_workers(self):
        assert "workers" in AnalysisConfig(workers=0).validate()

    def test_orchestrator_config(self):
        orch = AnalysisConfig(workers=5, parallel=False, use_processes=False).orchestrator_config()
        assert orch.workers == 5
        assert orch.enabled is False
        assert orch.use_processes is False


class TestConfigManager:
    """Hierarchy: project > user > env > defaults."""

    def test_defaults(self, tmp_path):
        config = ConfigManager(tmp_path).load()
        assert config.risk.default_bus_risk == 0.1
        assert config.analysis.workers == 3
        assert config.files.interesting == DEFAULT_INTERESTING
        assert config.output.directory == "output"

    def test_env_layer(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GBAT_ANALYZER_WORKERS", "6")
        monkeypatch.setenv("GBAT_PARALLEL_ENABLED", "no")
        config = ConfigManager(tmp_path).load()
        assert config.analysis.workers == 6
        assert config.analysis.parallel is False

    def test_bad_env_value_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GBAT_DEFAULT_BUS_RISK", "high")
        assert ConfigManager(tmp_path).load().risk.default_bus_risk == 0.1

    def test_user_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GBAT_ANALYZER_WORKERS", "6")
        write_yaml(ConfigManager.USER_CONFIG_FILE, {"analysis": {"workers": 2}})
        assert ConfigManager(tmp_path).load().analysis.workers == 2

    def test_project_overrides_user(self, tmp_path):
        write_yaml(ConfigManager.USER_CONFIG_FILE, {"risk": {"default_bus_risk": 0.3, "risk_threshold": 0.01}})
        manager = ConfigManager(tmp_path)
        write_yaml(manager.project_config_path, {"risk": {"default_bus_risk": 0.2}})

        config = manager.load()
        assert config.risk.default_bus_risk == 0.2
        # Untouched keys survive the deep merge
        assert config.risk.risk_threshold == 0.01

    def test_unreadable_yaml_ignored(self, tmp_path):
        manager = ConfigManager(tmp_path)
        manager.project_config_path.parent.mkdir(parents=True)
        manager.project_config_path.write_text("risk: [unclosed")
        assert manager.load().risk.default_bus_risk == 0.1

    def test_non_mapping_ignored(self, tmp_path):
        manager = ConfigManager(tmp_path)
        write_yaml(manager.project_config_path, ["a", "b"])
        assert manager.load().analysis.workers == 3

    def test_save_and_reload(self, tmp_path):
        manager = ConfigManager(tmp_path)
        config = manager.load()
        config.files.not_interesting = ["^vendor/"]
        config.analysis.creation_constant = 0.25
        manager.save_project(config)

        reloaded = ConfigManager(tmp_path).load()
        assert reloaded.files.not_interesting == ["^vendor/"]
        assert reloaded.analysis.creation_constant == 0.25

    def test_load_is_cached(self, tmp_path):
        manager = ConfigManager(tmp_path)
        assert manager.load() is manager.load()

    def test_get_config(self, tmp_path):
        assert isinstance(get_config(tmp_path), Config)


class TestConfigDict:

    def test_round_trip(self):
        config = Config()
        config.risk.departed_file = "departed.txt"
        config.git.exe = "/usr/bin/git"
        assert Config.from_dict(config.to_dict()).to_dict() == config.to_dict()

    def test_validate_first_error(self):
        config = Config()
        config.analysis.workers = 0
        assert "workers" in config.validate()
