"""Configuration management using pydantic-settings."""

from .settings import (
    BreakerSettings,
    ClientSettings,
    LoggingSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BreakerSettings",
    "ClientSettings",
    "LoggingSettings",
    "RetrySettings",
    "clear_settings_cache",
    "get_settings",
]
