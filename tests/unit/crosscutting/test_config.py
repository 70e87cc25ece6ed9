"""
Unit tests for Settings (pydantic-settings).
"""

import pytest
from pydantic import ValidationError

from accounts.crosscutting.config import Settings, get_settings

pytestmark = pytest.mark.unit


def test_defaults(monkeypatch):
    for name in ("LOG_LEVEL", "OTEL_ENABLED", "METRICS_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.otel_enabled is False
    assert settings.metrics_enabled is True
    assert settings.user_cache_ttl_seconds == 300.0
    assert settings.user_cache_max_entries == 10_000


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("USER_CACHE_TTL_SECONDS", "1.5")
    monkeypatch.setenv("APP_ENV", "Production")

    settings = Settings()

    assert settings.log_level == "DEBUG"
    assert settings.user_cache_ttl_seconds == 1.5
    assert settings.is_production() is True


@pytest.mark.parametrize(
    "name, value",
    [
        ("LOG_LEVEL", "verbose"),
        ("USER_CACHE_TTL_SECONDS", "0"),
        ("USER_CACHE_MAX_ENTRIES", "-1"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
