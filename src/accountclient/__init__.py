"""accountclient - resilient client for the organisation accounts API.

Creates, fetches and deletes accounts over HTTP. Every call runs through a
circuit breaker and a retrier with pluggable retry policy and backoff
strategy; error responses come back as typed RequestError exceptions.

Quick Start:
    >>> from accountclient import AccountClient
    >>> client = AccountClient("http://localhost:8080/v1")
    >>> account = client.fetch_account("ad27e265-9605-4b4b-a0e5-3003ea9cc4dc")

Retries and backoff:
    >>> from accountclient import DefaultRetryPolicy, ExponentialBackoff
    >>> client = AccountClient(
    ...     "http://localhost:8080/v1",
    ...     retry_policy=DefaultRetryPolicy(max_retries=3),
    ...     backoff=ExponentialBackoff(initial_delay=0.1, multiplier=2),
    ... )

From the environment (ACCOUNTCLIENT_BASE_URL, ACCOUNTCLIENT_RETRY_MAX_RETRIES, ...):
    >>> client = AccountClient.from_settings()

Error handling:
    >>> from accountclient import RequestError, TransportError
    >>> try:
    ...     client.fetch_account(missing_id)
    ... except RequestError as e:
    ...     e.status_code, e.message   # (404, "")
    ... except TransportError:
    ...     ...  # network failure or circuit open
"""

from .client import AccountClient
from .foundation.config import ClientSettings, clear_settings_cache, get_settings
from .foundation.errors import (
    AccountClientError,
    CircuitOpenError,
    ConfigurationError,
    ErrorCode,
    RequestError,
    ResponseDecodeError,
    TransportError,
    classify,
)
from .models import (
    AccountAttributes,
    AccountData,
    AccountResponse,
    CreateAccountData,
    CreateAccountRequest,
)
from .runtime.observability import configure_logging, get_logger
from .runtime.resilience import CircuitBreaker, State
from .runtime.retry import (
    NO_RETRY,
    Backoff,
    DefaultRetryPolicy,
    ExponentialBackoff,
    LinearBackoff,
    NoBackoff,
    Request,
    Retrier,
    RetryPolicy,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "AccountClient",
    # Models
    "AccountAttributes", "AccountData", "AccountResponse", "CreateAccountData", "CreateAccountRequest",
    # Retry
    "Backoff", "NoBackoff", "LinearBackoff", "ExponentialBackoff",
    "RetryPolicy", "DefaultRetryPolicy", "NO_RETRY", "Request", "Retrier",
    # Resilience
    "CircuitBreaker", "State",
    # Errors
    "AccountClientError", "ConfigurationError", "TransportError", "CircuitOpenError",
    "RequestError", "ResponseDecodeError", "ErrorCode", "classify",
    # Config & logging
    "ClientSettings", "get_settings", "clear_settings_cache",
    "configure_logging", "get_logger",
]
