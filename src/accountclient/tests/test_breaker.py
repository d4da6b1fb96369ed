"""Tests for the error-rate circuit breaker."""

from __future__ import annotations

import pytest

from accountclient import CircuitOpenError, RequestError
from accountclient.runtime.resilience import CircuitBreaker, MemoryStateStore, State


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker(
        error_percent_threshold=50, request_volume_threshold=4,
        sleep_window=5.0, rolling_window=10.0, clock=clock,
    )


def _fail() -> None:
    raise RequestError(500, "boom")


def _call_failing(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(RequestError):
            breaker.call(_fail)


def test_closed_breaker_passes_results_through(breaker: CircuitBreaker) -> None:
    assert breaker.call(lambda: 42) == 42
    assert breaker.state is State.CLOSED


def test_below_volume_threshold_never_opens(breaker: CircuitBreaker) -> None:
    _call_failing(breaker, 3)
    assert breaker.state is State.CLOSED
    assert breaker.error_percentage == 100.0


def test_opens_when_error_rate_exceeds_threshold(breaker: CircuitBreaker) -> None:
    breaker.call(lambda: None)
    _call_failing(breaker, 3)  # 75% of 4 calls
    assert breaker.is_open

    calls: list[int] = []
    with pytest.raises(CircuitOpenError) as exc:
        breaker.call(lambda: calls.append(1))
    assert calls == []  # short-circuited, wrapped function never ran
    assert exc.value.retry_after == pytest.approx(5.0)


def test_error_rate_at_threshold_stays_closed(breaker: CircuitBreaker) -> None:
    breaker.call(lambda: None)
    breaker.call(lambda: None)
    _call_failing(breaker, 2)  # exactly 50%
    assert breaker.is_closed


def test_old_outcomes_leave_the_window(breaker: CircuitBreaker, clock: FakeClock) -> None:
    _call_failing(breaker, 3)
    clock.advance(11)
    breaker.call(lambda: None)
    _call_failing(breaker, 1)
    assert breaker.is_closed
    assert breaker.error_percentage == 50.0


def test_half_open_probe_success_closes(breaker: CircuitBreaker, clock: FakeClock) -> None:
    _call_failing(breaker, 4)
    assert breaker.is_open
    clock.advance(5)
    assert breaker.state is State.HALF_OPEN
    assert breaker.call(lambda: "ok") == "ok"
    assert breaker.is_closed
    assert breaker.error_percentage == 0.0


def test_half_open_probe_failure_reopens(breaker: CircuitBreaker, clock: FakeClock) -> None:
    _call_failing(breaker, 4)
    clock.advance(5)
    _call_failing(breaker, 1)
    assert breaker.is_open
    with pytest.raises(CircuitOpenError):
        breaker.call(lambda: None)


def test_half_open_lets_one_probe_through(breaker: CircuitBreaker, clock: FakeClock) -> None:
    _call_failing(breaker, 4)
    clock.advance(5)
    assert breaker.allow()
    assert not breaker.allow()


def _interrupt() -> None:
    raise KeyboardInterrupt


def test_interrupted_probe_frees_the_half_open_slot(breaker: CircuitBreaker, clock: FakeClock) -> None:
    _call_failing(breaker, 4)
    clock.advance(5)
    with pytest.raises(KeyboardInterrupt):
        breaker.call(_interrupt)

    assert breaker.state is State.HALF_OPEN
    assert breaker.call(lambda: "ok") == "ok"
    assert breaker.is_closed


def test_interrupts_do_not_count_as_failures(breaker: CircuitBreaker) -> None:
    for _ in range(4):
        with pytest.raises(KeyboardInterrupt):
            breaker.call(_interrupt)
    assert breaker.is_closed
    assert breaker.error_percentage == 0.0


def test_reset_flushes_state(breaker: CircuitBreaker) -> None:
    _call_failing(breaker, 4)
    breaker.reset()
    assert breaker.is_closed
    assert breaker.error_percentage == 0.0


def test_breakers_sharing_a_store_share_the_circuit(clock: FakeClock) -> None:
    store = MemoryStateStore()
    a = CircuitBreaker(request_volume_threshold=2, store=store, clock=clock)
    b = CircuitBreaker(request_volume_threshold=2, store=store, clock=clock)
    _call_failing(a, 2)
    assert b.is_open
    assert store.keys() == ["account-client"]


def test_retry_after_is_none_when_closed(breaker: CircuitBreaker) -> None:
    assert breaker.retry_after is None


@pytest.mark.parametrize(
    "kwargs",
    [{"error_percent_threshold": 120}, {"request_volume_threshold": 0}, {"rolling_window": 0}],
)
def test_invalid_configuration(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        CircuitBreaker(**kwargs)
