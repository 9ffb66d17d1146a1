"""Environment-based configuration using pydantic-settings.

Example:
    >>> from rebound.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.backoff.max_times
    3
    
    # Or with environment variables:
    # REBOUND_BACKOFF_MAX_TIMES=5
    # REBOUND_LOG_FORMAT=json
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="REBOUND_LOG_",
        extra="ignore",
    )
    
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class BackoffSettings(BaseSettings):
    """Defaults for the standard exponential backoff."""
    
    model_config = SettingsConfigDict(
        env_prefix="REBOUND_BACKOFF_",
        env_parse_none_str="null",
        extra="ignore",
    )
    
    factor: Annotated[float, Field(ge=1.0, description="Exponential growth factor")] = 2.0
    min_delay: NonNegativeFloat = Field(default=1.0, description="First delay in seconds")
    max_delay: PositiveFloat = Field(default=60.0, description="Delay cap in seconds")
    max_times: int | None = Field(default=3, ge=0, description="Retries per call, None for unbounded")
    jitter: bool = False
    
    @model_validator(mode="after")
    def _check_bounds(self) -> BackoffSettings:
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay must be >= min_delay")
        return self
    
    @computed_field
    @property
    def is_bounded(self) -> bool:
        """Whether the default backoff eventually exhausts."""
        return self.max_times is not None


class ReboundSettings(BaseSettings):
    """Root settings.
    
    Example environment variables:
        REBOUND_LOG_LEVEL=DEBUG
        REBOUND_BACKOFF_MIN_DELAY=0.5
        REBOUND_BACKOFF_JITTER=true
    """
    
    model_config = SettingsConfigDict(
        env_prefix="REBOUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )
    
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    backoff: BackoffSettings = Field(default_factory=BackoffSettings)


@lru_cache(maxsize=1)
def get_settings() -> ReboundSettings:
    """Get the global settings instance (cached)."""
    return ReboundSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).
    
    The next get_settings() call reloads configuration from the environment.
    """
    get_settings.cache_clear()
