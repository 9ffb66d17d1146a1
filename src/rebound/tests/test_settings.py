"""Tests for environment-based settings."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from rebound import BackoffSettings, LoggingSettings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    settings = get_settings()
    assert settings.logging.level == "INFO"
    assert settings.logging.format == "console"
    assert settings.backoff.factor == 2.0
    assert settings.backoff.min_delay == 1.0
    assert settings.backoff.max_delay == 60.0
    assert settings.backoff.max_times == 3
    assert settings.backoff.jitter is False
    assert settings.backoff.is_bounded


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REBOUND_BACKOFF_MIN_DELAY", "0.5")
    monkeypatch.setenv("REBOUND_BACKOFF_JITTER", "true")
    monkeypatch.setenv("REBOUND_LOG_FORMAT", "json")
    monkeypatch.setenv("REBOUND_LOG_LEVEL", "DEBUG")
    settings = get_settings()
    assert settings.backoff.min_delay == 0.5
    assert settings.backoff.jitter is True
    assert settings.logging.format == "json"
    assert settings.logging.level == "DEBUG"


def test_clear_cache_reloads(monkeypatch: pytest.MonkeyPatch) -> None:
    assert get_settings().backoff.max_times == 3
    monkeypatch.setenv("REBOUND_BACKOFF_MAX_TIMES", "7")
    assert get_settings().backoff.max_times == 3
    clear_settings_cache()
    assert get_settings().backoff.max_times == 7


def test_unbounded_max_times() -> None:
    assert not BackoffSettings(max_times=None).is_bounded


@pytest.mark.parametrize(
    "values",
    [
        {"factor": 0.5},
        {"min_delay": -1.0},
        {"max_delay": 0.0},
        {"min_delay": 10.0, "max_delay": 5.0},
        {"max_times": -1},
    ],
)
def test_invalid_backoff_settings(values: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        BackoffSettings(**values)


def test_invalid_log_format() -> None:
    with pytest.raises(ValidationError):
        LoggingSettings(format="xml")


def test_null_max_times_from_environment_is_unbounded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REBOUND_BACKOFF_MAX_TIMES", "null")
    backoff = get_settings().backoff
    assert backoff.max_times is None
    assert not backoff.is_bounded
