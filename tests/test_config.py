"""
Tests for config.py - Configuration.
"""
from pathlib import Path

import pytest

import config
from config import ArmatureConfig, Environment, get_config, reload_config


@pytest.fixture(autouse=True)
def reset_singleton():
    config._config = None
    yield
    config._config = None


class TestArmatureConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("ARMATURE_ENV", "ARMATURE_DEBUG", "ARMATURE_PROJECT_DIR"):
            monkeypatch.delenv(name, raising=False)

        cfg = ArmatureConfig()

        assert cfg.environment == Environment.DEV.value
        assert cfg.debug is False
        assert cfg.project_dir == Path(".").resolve()
        assert not cfg.is_production

    def test_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ARMATURE_ENV", "prod")
        monkeypatch.setenv("ARMATURE_DEBUG", "1")
        monkeypatch.setenv("ARMATURE_PROJECT_DIR", str(tmp_path))

        cfg = ArmatureConfig()

        assert cfg.environment == "prod"
        assert cfg.debug is True
        assert cfg.project_dir == tmp_path.resolve()
        assert cfg.is_production

    def test_sub_configs_share_environment(self, monkeypatch):
        monkeypatch.setenv("ARMATURE_ENV", "staging")

        cfg = ArmatureConfig()

        assert cfg.logging.environment == "staging"
        assert cfg.tracing.environment == "staging"

    def test_to_dict(self):
        cfg = ArmatureConfig(environment="test", debug=True)

        data = cfg.to_dict()
        assert data["environment"] == "test"
        assert data["debug"] is True
        assert set(data) == {"environment", "debug", "project_dir", "logging", "tracing", "metrics"}


class TestConfigSingleton:
    """Tests for get_config / reload_config."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload_config_rereads_environment(self, monkeypatch):
        monkeypatch.setenv("ARMATURE_ENV", "dev")
        first = get_config()

        monkeypatch.setenv("ARMATURE_ENV", "test")
        second = reload_config()

        assert second is not first
        assert second.environment == "test"
        assert get_config() is second
