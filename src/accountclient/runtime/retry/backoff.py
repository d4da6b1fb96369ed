"""Backoff strategies for the retrier.

Provides pluggable delay calculation between attempts:
- NoBackoff: Retry immediately
- LinearBackoff: Same fixed delay before every retry
- ExponentialBackoff: initial_delay * multiplier ** attempt

Strategies are frozen and hold no counters: the delay is a pure function of
the attempt index, so one instance can serve any number of concurrent calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Attempt numbers are 0-indexed: attempt 0 is the pause after the first
    failed attempt, before the first retry.
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds before the retry following ``attempt``."""
        ...


@dataclass(frozen=True, slots=True)
class NoBackoff:
    """Zero delay between retries."""

    def delay(self, attempt: int) -> float:
        return 0.0


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Fixed delay between retries, independent of the attempt index.

    Attributes:
        delay_seconds: Pause before every retry (default: 0.1)
    """

    delay_seconds: float = 0.1

    def __post_init__(self) -> None:
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {self.delay_seconds}")

    def delay(self, attempt: int) -> float:
        return self.delay_seconds


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff.

    Delay = initial_delay * (multiplier ^ attempt)

    Attributes:
        initial_delay: Delay before the first retry in seconds (default: 0.1)
        multiplier: Growth factor per retry (default: 2.0)
    """

    initial_delay: float = 0.1
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def delay(self, attempt: int) -> float:
        return self.initial_delay * (self.multiplier ** attempt)
