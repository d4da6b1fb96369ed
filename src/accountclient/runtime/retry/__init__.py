"""Retry core: backoff strategies, retry policies and the retrier.

Example:
    >>> from accountclient.runtime.retry import (
    ...     DefaultRetryPolicy, ExponentialBackoff, Request, Retrier,
    ... )
    >>> retrier = Retrier(
    ...     policy=DefaultRetryPolicy(max_retries=3),
    ...     backoff=ExponentialBackoff(initial_delay=0.1, multiplier=2),
    ... )
    >>> response = retrier.execute(Request("GET", url), send_one)
"""

from .backoff import Backoff, ExponentialBackoff, LinearBackoff, NoBackoff
from .policy import NO_RETRY, DefaultRetryPolicy, RetryPolicy, is_transport_error
from .retrier import Attempt, PerformAttempt, Request, Retrier

__all__ = [
    # Backoff strategies
    "Backoff",
    "NoBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    # Policy
    "RetryPolicy",
    "DefaultRetryPolicy",
    "NO_RETRY",
    "is_transport_error",
    # Execution
    "Request",
    "Attempt",
    "PerformAttempt",
    "Retrier",
]
