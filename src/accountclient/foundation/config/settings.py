"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated client configuration from environment
variables with sensible defaults. Supports .env files and nested settings.

Example:
    >>> from accountclient.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_retries
    0
    >>> settings.build_backoff()
    NoBackoff()

    # Or with environment variables:
    # ACCOUNTCLIENT_BASE_URL=http://localhost:8080/v1
    # ACCOUNTCLIENT_RETRY_MAX_RETRIES=3
    # ACCOUNTCLIENT_RETRY_BACKOFF=exponential
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from accountclient.runtime.resilience import CircuitBreaker
    from accountclient.runtime.retry import Backoff, DefaultRetryPolicy

BackoffKind = Literal["none", "linear", "exponential"]


class RetrySettings(BaseSettings):
    """Retry and backoff configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTCLIENT_RETRY_",
        extra="ignore",
    )

    max_retries: Annotated[int, Field(ge=0, le=20)] = 0
    backoff: BackoffKind = "none"
    delay: NonNegativeFloat = Field(default=0.1, description="Fixed delay for linear backoff (seconds)")
    initial_delay: NonNegativeFloat = Field(default=0.1, description="First delay for exponential backoff (seconds)")
    multiplier: Annotated[float, Field(ge=1.0)] = 2.0

    @field_validator("backoff", mode="before")
    @classmethod
    def _normalize_backoff(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class BreakerSettings(BaseSettings):
    """Circuit breaker configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTCLIENT_BREAKER_",
        extra="ignore",
    )

    command: str = "account-client"
    error_percent_threshold: Annotated[float, Field(ge=0.0, le=100.0)] = 30.0
    request_volume_threshold: PositiveInt = 20
    sleep_window: NonNegativeFloat = Field(default=5.0, description="Seconds open before a probe")
    rolling_window: PositiveFloat = Field(default=10.0, description="Seconds of history for the error rate")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTCLIENT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ClientSettings(BaseSettings):
    """Root settings for the account client.

    Loads configuration from environment variables with ACCOUNTCLIENT_ prefix.

    Example environment variables:
        ACCOUNTCLIENT_BASE_URL=http://localhost:8080/v1
        ACCOUNTCLIENT_TIMEOUT=20
        ACCOUNTCLIENT_RETRY_MAX_RETRIES=3
        ACCOUNTCLIENT_RETRY_BACKOFF=linear
        ACCOUNTCLIENT_BREAKER_ERROR_PERCENT_THRESHOLD=50
        ACCOUNTCLIENT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTCLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    base_url: str | None = Field(default=None, description="Account API base URL, e.g. http://localhost:8080/v1")
    timeout: PositiveFloat = Field(default=10.0, description="Per-attempt HTTP timeout in seconds")
    debug: bool = False

    retry: RetrySettings = Field(default_factory=RetrySettings)
    breaker: BreakerSettings = Field(default_factory=BreakerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def build_retry_policy(self) -> DefaultRetryPolicy:
        from accountclient.runtime.retry import DefaultRetryPolicy
        return DefaultRetryPolicy(max_retries=self.retry.max_retries)

    def build_backoff(self) -> Backoff:
        """Backoff strategy selected by ``retry.backoff``."""
        from accountclient.runtime.retry import ExponentialBackoff, LinearBackoff, NoBackoff
        match self.retry.backoff:
            case "linear":
                return LinearBackoff(self.retry.delay)
            case "exponential":
                return ExponentialBackoff(self.retry.initial_delay, self.retry.multiplier)
            case _:
                return NoBackoff()

    def apply_logging(self) -> None:
        """Configure process logging from ``logging`` (DEBUG when ``debug`` is set)."""
        from accountclient.runtime.observability import configure_logging
        configure_logging(self.logging.format, "DEBUG" if self.debug else self.logging.level)

    def build_breaker(self) -> CircuitBreaker:
        from accountclient.runtime.resilience import CircuitBreaker
        b = self.breaker
        return CircuitBreaker(
            command=b.command,
            error_percent_threshold=b.error_percent_threshold,
            request_volume_threshold=b.request_volume_threshold,
            sleep_window=b.sleep_window,
            rolling_window=b.rolling_window,
        )


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    """Get the process-wide settings instance (cached)."""
    return ClientSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
