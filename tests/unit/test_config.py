"""Unit tests for configuration."""

import pytest

from notecache.framework.config import CacheConfig, ReminderConfig, ServiceConfig
from notecache.utils.errors import ConfigurationError


def test_defaults(monkeypatch):
    for name in ("NOTECACHE_EXPIRATION_MS", "NOTECACHE_SWEEP_INTERVAL_SECONDS", "NOTECACHE_ENV", "NOTECACHE_DAILIES_BLACKLIST"):
        monkeypatch.delenv(name, raising=False)

    config = ServiceConfig.from_env()

    assert config.service_name == "notecache"
    assert config.environment == "local"
    assert config.cache.expiration_ms == 3_600_000
    assert config.cache.sweep_interval_seconds == 3600
    assert config.reminders.dailies_blacklist == ["honkai", "tot"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NOTECACHE_EXPIRATION_MS", "600000")
    monkeypatch.setenv("NOTECACHE_SECONDARY_ENABLED", "false")
    monkeypatch.setenv("NOTECACHE_DAILIES_BLACKLIST", "honkai, ,starrail")
    monkeypatch.setenv("NOTECACHE_ENV", "prod")

    config = ServiceConfig.from_env("reminders")

    assert config.cache.expiration_ms == 600_000
    assert config.redis_url() is None
    assert config.reminders.dailies_blacklist == ["honkai", "starrail"]
    assert config.to_dict()["environment"] == "prod"


def test_invalid_environment(monkeypatch):
    monkeypatch.setenv("NOTECACHE_ENV", "qa")

    with pytest.raises(ConfigurationError) as exc_info:
        ServiceConfig.from_env()

    assert exc_info.value.config_key == "environment"


def test_invalid_values():
    with pytest.raises(ConfigurationError):
        CacheConfig(expiration_ms=-1, sweep_interval_seconds=10, secondary_enabled=False, key_prefix="notes")

    with pytest.raises(ConfigurationError):
        ReminderConfig(dailies_hour=24, dailies_minute=0, dailies_blacklist=[])


def test_to_dict_sections(monkeypatch):
    monkeypatch.delenv("NOTECACHE_ENV", raising=False)

    data = ServiceConfig(service_name="notecache").to_dict()

    assert set(data) == {"service_name", "environment", "cache", "database", "observability", "reminders"}
    assert data["cache"]["key_prefix"] == "notes"
