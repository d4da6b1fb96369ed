"""HTTP client for the organisation accounts API.

Every operation goes through the same pipeline:
    circuit breaker → retrier (policy + backoff) → httpx transport

The breaker sees the whole retried call as one outcome and counts every
failure, 4xx included, towards its error rate. Retries are off by default.
Each operation takes an optional ``timeout`` that replaces the client-wide
one for every attempt.

Example:
    >>> from accountclient import AccountClient, DefaultRetryPolicy, LinearBackoff
    >>>
    >>> with AccountClient(
    ...     "http://localhost:8080/v1",
    ...     retry_policy=DefaultRetryPolicy(max_retries=3),
    ...     backoff=LinearBackoff(0.1),
    ...     timeout=20.0,
    ... ) as client:
    ...     created = client.create_account(request)
    ...     fetched = client.fetch_account(created.data.id)
    ...     client.delete_account(fetched.data.id, fetched.data.version)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

import httpx
from pydantic import AnyHttpUrl, BaseModel, TypeAdapter, ValidationError

from accountclient.foundation.config import ClientSettings, get_settings
from accountclient.foundation.errors import (
    AccountClientError,
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
    classify,
)
from accountclient.models import AccountResponse, CreateAccountRequest
from accountclient.runtime.observability import get_logger
from accountclient.runtime.resilience import CircuitBreaker
from accountclient.runtime.retry import NO_RETRY, NoBackoff, Request, Retrier

if TYPE_CHECKING:
    from accountclient.runtime.retry import Backoff, RetryPolicy

M = TypeVar("M", bound=BaseModel)
Timeout = float | httpx.Timeout

# Applied to the httpx client created when none is supplied
DEFAULT_TIMEOUT = 10.0
JSON_TYPE = "application/json"
ACCOUNTS_PATH = "organisation/accounts"

_UrlAdapter: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


def _validate_base_url(base_url: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    try:
        _UrlAdapter.validate_python(base_url)
    except ValidationError as e:
        raise ConfigurationError(f"invalid url provided: {base_url!r}") from e
    return base_url.rstrip("/")


class AccountClient:
    """Client for create/fetch/delete operations on accounts.

    Args:
        base_url: API root, e.g. ``http://localhost:8080/v1``; must be a valid http(s) URL
        http_client: Custom httpx.Client (default: one with ``timeout``)
        retry_policy: Retry decisions and budget (default: no retries)
        backoff: Delay between retries (default: NoBackoff)
        breaker: Circuit breaker guarding every call (default: a new CircuitBreaker)
        timeout: Per-attempt timeout for the default httpx client, in seconds

    Raises:
        ConfigurationError: base_url is not a valid URL
    """

    __slots__ = ("_base_url", "_http", "_owns_http", "_retrier", "_breaker", "_log")

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.Client | None = None,
        retry_policy: RetryPolicy | None = None,
        backoff: Backoff | None = None,
        breaker: CircuitBreaker | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = _validate_base_url(base_url)
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=timeout)
        self._retrier = Retrier(policy=retry_policy or NO_RETRY, backoff=backoff or NoBackoff())
        self._breaker = breaker if breaker is not None else CircuitBreaker()
        self._log = get_logger("accountclient", base_url=self._base_url)

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None, *,
                      http_client: httpx.Client | None = None) -> AccountClient:
        """Build a client from ClientSettings (default: environment via get_settings())."""
        s = settings or get_settings()
        if not s.base_url:
            raise ConfigurationError("base_url is not configured (set ACCOUNTCLIENT_BASE_URL)")
        return cls(
            s.base_url,
            http_client=http_client,
            retry_policy=s.build_retry_policy(),
            backoff=s.build_backoff(),
            breaker=s.build_breaker(),
            timeout=s.timeout,
        )

    # ─────────────────────────────────────────────────────────────────
    # Properties & lifecycle
    # ─────────────────────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def http_client(self) -> httpx.Client:
        return self._http

    @property
    def retrier(self) -> Retrier:
        return self._retrier

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def close(self) -> None:
        """Close the underlying httpx client if this client created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> AccountClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AccountClient({self._base_url!r}, {self._retrier!r})"

    # ─────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────

    def create_account(self, account: CreateAccountRequest, *, timeout: Timeout | None = None) -> AccountResponse:
        """Create an account.

        Args:
            account: Account to create
            timeout: Deadline for each attempt, overriding the client default

        Raises:
            RequestError: API answered with status >= 400; the message may be empty
                because not every error status comes with a parseable body
            TransportError: Request could not be completed or the circuit is open
            ResponseDecodeError: Success body is empty or not an account
        """
        request = self._request("POST", self._accounts_url(), body=account.to_json(), timeout=timeout)
        return self._send(request, AccountResponse, op="create_account", account_id=str(account.data.id))

    def fetch_account(self, account_id: UUID | str, *, timeout: Timeout | None = None) -> AccountResponse:
        """Fetch an existing account by id.

        Raises:
            RequestError: status 404 when no such account exists, or any other error status
            TransportError: Request could not be completed or the circuit is open
            ResponseDecodeError: Success body is empty or not an account
        """
        account_id = UUID(str(account_id))
        request = self._request("GET", self._accounts_url(account_id), timeout=timeout)
        return self._send(request, AccountResponse, op="fetch_account", account_id=str(account_id))

    def delete_account(self, account_id: UUID | str, version: int, *, timeout: Timeout | None = None) -> None:
        """Delete an account. ``version`` must match the account's current version.

        Raises:
            RequestError: 404 for an unknown account, 409 for a stale version
            TransportError: Request could not be completed or the circuit is open
        """
        if version is None or version < 0:
            raise ValueError(f"version must be a non-negative integer, got {version!r}")
        account_id = UUID(str(account_id))
        request = self._request("DELETE", f"{self._accounts_url(account_id)}?version={version}", timeout=timeout)
        self._send(request, None, op="delete_account", account_id=str(account_id), version=version)

    # ─────────────────────────────────────────────────────────────────
    # Request pipeline
    # ─────────────────────────────────────────────────────────────────

    def _accounts_url(self, account_id: UUID | None = None) -> str:
        url = f"{self._base_url}/{ACCOUNTS_PATH}"
        return f"{url}/{account_id}" if account_id is not None else url

    def _request(self, method: str, url: str, body: bytes | None = None,
                 headers: dict[str, str] | None = None, timeout: Timeout | None = None) -> Request:
        hdrs = dict(headers or {})
        if not any(k.lower() == "content-type" for k in hdrs):
            hdrs["Content-Type"] = JSON_TYPE
        hdrs.setdefault("Accept", JSON_TYPE)
        return Request(method, url, hdrs, body, timeout)

    def _send(self, request: Request, model: type[M] | None, **ctx: object) -> M | None:
        """Send through breaker and retrier, then decode the body into ``model``.

        With a model, an empty success body is a decode failure.
        """
        log = self._log.bind(method=request.method, url=request.url, **ctx)
        try:
            body = self._breaker.call(lambda: self._send_with_retries(request))
        except AccountClientError as e:
            log.warning("request failed", error=str(e), error_type=type(e).__name__)
            raise
        log.debug("request succeeded", bytes=len(body))

        if model is None:
            return None
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            raise ResponseDecodeError(f"failed to decode {model.__name__} from response body") from e

    def _send_with_retries(self, request: Request) -> bytes:
        try:
            response = self._retrier.execute(request, self._perform)
        except httpx.HTTPError as e:
            raise TransportError(f"failed to make request to the api: {e}") from e

        try:
            body = response.read()
        except httpx.HTTPError as e:
            raise TransportError(f"failed to read response body: {e}") from e
        finally:
            self._close_response(response)

        if response.status_code >= httpx.codes.BAD_REQUEST:
            raise classify(body, response.status_code)
        return body

    def _perform(self, request: Request) -> httpx.Response:
        """One attempt: the request body is consumed here."""
        timeout = request.timeout if request.timeout is not None else httpx.USE_CLIENT_DEFAULT
        return self._http.send(self._http.build_request(
            request.method, request.url, headers=dict(request.headers), content=request.read_body(),
            timeout=timeout,
        ))

    def _close_response(self, response: httpx.Response) -> None:
        try:
            response.close()
        except Exception as e:
            self._log.warning("failed to close response body", error=str(e))
