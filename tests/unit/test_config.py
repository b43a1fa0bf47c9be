"""Tests for configuration defaults and env overrides."""

from __future__ import annotations

from meridian.core.config import AppSettings, ImportConfig, RedisConfig


def test_default_settings():
    settings = AppSettings()
    assert settings.environment == "dev"
    assert settings.backend == "memory"
    assert settings.imports.default_marital_status == "Single"


def test_redis_config_defaults():
    config = RedisConfig()
    assert config.port == 6379
    assert config.key_prefix == "meridian:import"
    assert config.progress_ttl_seconds == 86400


def test_env_override(monkeypatch):
    monkeypatch.setenv("MERIDIAN_IMPORT_HOUSEHOLD_CODE_PREFIX", "HX")
    monkeypatch.setenv("MERIDIAN_BACKEND", "aws")
    assert ImportConfig().household_code_prefix == "HX"
    assert AppSettings().backend == "aws"
