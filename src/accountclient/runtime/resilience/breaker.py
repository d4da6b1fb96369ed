"""Circuit breaker guarding calls to the account API.

Implements an error-rate circuit breaker as a standalone state machine keyed
by a command name. Outcomes are kept in a rolling time window; the circuit
trips on error percentage rather than on a consecutive-failure count.

State Machine:
    CLOSED → error % over threshold (with enough volume) → OPEN
    OPEN → sleep_window elapses → HALF_OPEN (one probe call)
    HALF_OPEN → probe succeeds → CLOSED
    HALF_OPEN → probe fails → OPEN

State lives in a StateStore so several breakers (or a test) can share, inspect
or flush it. The breaker is the only mutable collaborator in the call path and
serialises updates with a lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Protocol, TypeVar, runtime_checkable

from accountclient.foundation.errors import CircuitOpenError

logger = logging.getLogger("accountclient.breaker")

T = TypeVar("T")

DEFAULT_COMMAND = "account-client"


class State(IntEnum):
    """Circuit breaker states."""
    CLOSED, OPEN, HALF_OPEN = 0, 1, 2  # Normal → Failing fast → Probing recovery


@dataclass(slots=True)
class CircuitState:
    """Per-circuit state tracking."""
    state: State = State.CLOSED
    outcomes: deque[tuple[float, bool]] = field(default_factory=deque)  # (timestamp, ok)
    last_state_change: float = field(default_factory=time.monotonic)
    probing: bool = False

    def prune(self, now: float, window: float) -> None:
        """Drop outcomes older than the rolling window."""
        while self.outcomes and now - self.outcomes[0][0] > window:
            self.outcomes.popleft()

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failures(self) -> int:
        return sum(1 for _, ok in self.outcomes if not ok)

    @property
    def error_percentage(self) -> float:
        """Failures as a percentage of calls in the window."""
        return (self.failures / self.total) * 100 if self.outcomes else 0.0


@runtime_checkable
class StateStore(Protocol):
    """Protocol for circuit state storage backends."""
    def get(self, key: str) -> CircuitState | None: ...
    def set(self, key: str, state: CircuitState) -> None: ...
    def delete(self, key: str) -> bool: ...
    def keys(self) -> list[str]: ...


class MemoryStateStore:
    """In-memory state store (default)."""
    __slots__ = ("_states",)

    def __init__(self) -> None:
        self._states: dict[str, CircuitState] = {}

    def get(self, key: str) -> CircuitState | None:
        return self._states.get(key)

    def set(self, key: str, state: CircuitState) -> None:
        self._states[key] = state

    def delete(self, key: str) -> bool:
        return self._states.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._states)


@dataclass(slots=True)
class CircuitBreaker:
    """Error-rate circuit breaker.

    Args:
        command: Circuit identifier (default: "account-client")
        error_percent_threshold: Error % above which the circuit opens (default: 30)
        request_volume_threshold: Minimum calls in the window before tripping (default: 20)
        sleep_window: Seconds the circuit stays open before a probe (default: 5)
        rolling_window: Seconds of history used for the error rate (default: 10)
        store: State storage backend (default: MemoryStateStore)
        clock: Monotonic time source (default: time.monotonic)

    Example:
        >>> breaker = CircuitBreaker(error_percent_threshold=50, request_volume_threshold=10)
        >>> body = breaker.call(lambda: send_with_retries(request))
        >>> breaker.state, breaker.error_percentage
    """

    command: str = DEFAULT_COMMAND
    error_percent_threshold: float = 30.0
    request_volume_threshold: int = 20
    sleep_window: float = 5.0
    rolling_window: float = 10.0
    store: StateStore = field(default_factory=MemoryStateStore, repr=False)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0 <= self.error_percent_threshold <= 100:
            raise ValueError(f"error_percent_threshold must be within 0..100, got {self.error_percent_threshold}")
        if self.request_volume_threshold < 1:
            raise ValueError(f"request_volume_threshold must be >= 1, got {self.request_volume_threshold}")
        if self.sleep_window < 0 or self.rolling_window <= 0:
            raise ValueError("sleep_window must be >= 0 and rolling_window > 0")

    def _circuit(self) -> CircuitState:
        """Get or create circuit state."""
        if (state := self.store.get(self.command)) is None:
            state = CircuitState(last_state_change=self.clock())
            self.store.set(self.command, state)
        return state

    def _transition(self, circuit: CircuitState, state: State) -> None:
        logger.info(f"circuit '{self.command}' {circuit.state.name} -> {state.name}")
        circuit.state, circuit.last_state_change, circuit.probing = state, self.clock(), False
        if state == State.CLOSED:
            circuit.outcomes.clear()

    def _evaluate_state(self, circuit: CircuitState) -> State:
        """Evaluate and potentially transition circuit state."""
        if circuit.state == State.OPEN and self.clock() - circuit.last_state_change >= self.sleep_window:
            self._transition(circuit, State.HALF_OPEN)
            self.store.set(self.command, circuit)
        return circuit.state

    # ─────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────

    def allow(self) -> bool:
        """Check whether a call may proceed. In HALF_OPEN only one probe is let through."""
        with self._lock:
            circuit = self._circuit()
            match self._evaluate_state(circuit):
                case State.OPEN:
                    return False
                case State.HALF_OPEN:
                    if circuit.probing:
                        return False
                    circuit.probing = True
                    self.store.set(self.command, circuit)
            return True

    def record_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            circuit, now = self._circuit(), self.clock()
            if circuit.state == State.HALF_OPEN:
                self._transition(circuit, State.CLOSED)
            elif circuit.state == State.CLOSED:
                circuit.outcomes.append((now, True))
                circuit.prune(now, self.rolling_window)
            self.store.set(self.command, circuit)

    def record_failure(self) -> None:
        """Record a failed call, opening the circuit when the error rate is too high."""
        with self._lock:
            circuit, now = self._circuit(), self.clock()
            if circuit.state == State.HALF_OPEN:
                self._transition(circuit, State.OPEN)
            elif circuit.state == State.CLOSED:
                circuit.outcomes.append((now, False))
                circuit.prune(now, self.rolling_window)
                if (circuit.total >= self.request_volume_threshold
                        and circuit.error_percentage > self.error_percent_threshold):
                    logger.warning(
                        f"circuit '{self.command}' tripped: {circuit.error_percentage:.0f}% errors "
                        f"over {circuit.total} calls"
                    )
                    self._transition(circuit, State.OPEN)
            self.store.set(self.command, circuit)

    def call(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` through the breaker.

        Raises:
            CircuitOpenError: Circuit is open; ``fn`` was not called
            Exception: Whatever ``fn`` raised, after recording the failure

        Interrupts (KeyboardInterrupt, SystemExit) are not counted, but a
        half-open probe they cut short is released for the next caller.
        """
        if not self.allow():
            raise CircuitOpenError(self.command, self.retry_after)
        try:
            result = fn()
        except Exception:
            self.record_failure()
            raise
        except BaseException:
            self._release_probe()
            raise
        self.record_success()
        return result

    def _release_probe(self) -> None:
        with self._lock:
            circuit = self._circuit()
            if circuit.state == State.HALF_OPEN and circuit.probing:
                circuit.probing = False
                self.store.set(self.command, circuit)

    def reset(self) -> None:
        """Manually reset circuit to closed state with an empty window."""
        with self._lock:
            self.store.set(self.command, CircuitState(last_state_change=self.clock()))

    # ─────────────────────────────────────────────────────────────────
    # Observability Properties
    # ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> State:
        """Current circuit state (evaluates transitions)."""
        with self._lock:
            return self._evaluate_state(self._circuit())

    @property
    def is_open(self) -> bool:
        return self.state == State.OPEN

    @property
    def is_closed(self) -> bool:
        return self.state == State.CLOSED

    @property
    def error_percentage(self) -> float:
        """Error percentage over the current rolling window."""
        with self._lock:
            circuit = self._circuit()
            circuit.prune(self.clock(), self.rolling_window)
            return circuit.error_percentage

    @property
    def retry_after(self) -> float | None:
        """Seconds until the circuit half-opens, or None if not open."""
        with self._lock:
            circuit = self._circuit()
            if circuit.state != State.OPEN:
                return None
            return max(0.0, self.sleep_window - (self.clock() - circuit.last_state_change))
