"""Resilience primitives shared by the account client."""

from .breaker import (
    DEFAULT_COMMAND,
    CircuitBreaker,
    CircuitState,
    MemoryStateStore,
    State,
    StateStore,
)

__all__ = ["CircuitBreaker", "CircuitState", "State", "StateStore", "MemoryStateStore", "DEFAULT_COMMAND"]
