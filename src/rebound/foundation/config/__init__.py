"""Configuration management using pydantic-settings."""

from .settings import (
    BackoffSettings,
    LoggingSettings,
    ReboundSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BackoffSettings",
    "LoggingSettings",
    "ReboundSettings",
    "clear_settings_cache",
    "get_settings",
]
