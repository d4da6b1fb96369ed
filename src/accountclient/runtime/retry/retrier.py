"""Retrier: runs one request through a retry policy and backoff strategy.

The transport consumes a request body when it sends it, so a body can only be
sent once. The retrier reads the body into memory before the first attempt
and gives every attempt its own fresh copy, which makes the exact same bytes
go out on each retry.

Example:
    >>> retrier = Retrier(DefaultRetryPolicy(max_retries=3), ExponentialBackoff(0.1, 2))
    >>> response = retrier.execute(request, send)  # send: Request -> httpx.Response
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import IO, Callable

import httpx

from .backoff import Backoff, NoBackoff
from .policy import NO_RETRY, RetryPolicy

logger = logging.getLogger("accountclient.retry")

Body = bytes | IO[bytes]


@dataclass(frozen=True, slots=True)
class Request:
    """Immutable description of one HTTP request.

    Attributes:
        method: HTTP method
        url: Absolute request URL
        headers: Request headers
        body: Payload as bytes or a readable binary stream (single use)
        timeout: Deadline applied to every attempt; None uses the transport default
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Body | None = field(default=None, repr=False)
    timeout: float | httpx.Timeout | None = None

    @property
    def has_body(self) -> bool:
        return self.body is not None

    def with_body(self, body: Body | None) -> Request:
        return replace(self, body=body)

    def read_body(self) -> bytes | None:
        """Consume the body. Streams are read to the end and closed."""
        if self.body is None or isinstance(self.body, bytes):
            return self.body
        try:
            return self.body.read()
        finally:
            self.body.close()


@dataclass(slots=True)
class Attempt:
    """Outcome of one attempt: a response, an error, or both absent."""

    response: httpx.Response | None = None
    error: Exception | None = None

    def unwrap(self) -> httpx.Response:
        """Return the response or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        if self.response is None:
            raise RuntimeError("attempt produced neither a response nor an error")
        return self.response


PerformAttempt = Callable[[Request], httpx.Response]


def _close_quietly(response: httpx.Response | None) -> None:
    """Release a response that will not be returned; failures are only logged."""
    if response is None:
        return
    try:
        response.close()
    except Exception as e:
        logger.warning(f"failed to close discarded response: {e}")


@dataclass(frozen=True, slots=True)
class Retrier:
    """Retry a request according to a policy, pausing per a backoff strategy.

    Holds configuration only. Per-call state (attempt index, buffered body)
    lives on the stack of ``execute``, so a single Retrier is safe to share
    between threads.

    Args:
        policy: Decides whether to retry and how many retries are allowed
        backoff: Computes the pause before each retry
        sleep: Blocking sleep function (default: time.sleep)
    """

    policy: RetryPolicy = NO_RETRY
    backoff: Backoff = field(default_factory=NoBackoff)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def _attempt(self, perform: PerformAttempt, request: Request) -> Attempt:
        try:
            return Attempt(response=perform(request))
        except Exception as e:
            return Attempt(error=e)

    def execute(self, request: Request, perform: PerformAttempt) -> httpx.Response:
        """Run ``perform`` until it succeeds, the policy gives up, or the budget runs out.

        Args:
            request: Request to send; a stream body is read and closed here
            perform: Executes one attempt, returning a response or raising

        Returns:
            Response of the last attempt (which may carry an error status)

        Raises:
            Exception: Error raised by the last attempt
        """
        snapshot = request.read_body() if request.has_body else None

        def fresh() -> Request:
            return request.with_body(io.BytesIO(snapshot)) if snapshot is not None else request

        max_retries = self.policy.max_retries
        outcome = self._attempt(perform, fresh())
        retries = 0

        while self.policy.should_retry(outcome.error, outcome.response):
            if retries >= max_retries:
                if max_retries:
                    logger.info(f"{request.method} {request.url}: retry budget of {max_retries} exhausted")
                break

            delay = self.backoff.delay(retries)
            reason = (f"status {outcome.response.status_code}" if outcome.response is not None
                      else type(outcome.error).__name__)
            logger.warning(
                f"{request.method} {request.url}: attempt {retries + 1} failed ({reason}). "
                f"Retry {retries + 1}/{max_retries} in {delay:.3f}s"
            )
            _close_quietly(outcome.response)
            self.sleep(delay)
            outcome = self._attempt(perform, fresh())
            retries += 1

        return outcome.unwrap()
