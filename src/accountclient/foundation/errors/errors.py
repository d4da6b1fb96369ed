"""Exception hierarchy for the account API client.

Every failure the client surfaces derives from AccountClientError:
- ConfigurationError: bad base URL or settings, raised before any network I/O
- TransportError: the HTTP exchange never completed (connect, DNS, timeout)
- CircuitOpenError: the breaker rejected the call, seen as a transport failure
- RequestError: the API answered with status >= 400
- ResponseDecodeError: a success body did not match the expected model
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable classification of API error responses."""
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN"


_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    429: ErrorCode.RATE_LIMITED,
}


def code_for_status(status_code: int) -> ErrorCode:
    """Map an HTTP status code onto an ErrorCode."""
    if status_code >= 500:
        return ErrorCode.SERVER_ERROR
    return _STATUS_CODES.get(status_code, ErrorCode.UNKNOWN)


class AccountClientError(Exception):
    """Base class for all account client failures."""


class ConfigurationError(AccountClientError, ValueError):
    """Client could not be constructed from the given configuration."""


class TransportError(AccountClientError):
    """Failed to complete the HTTP exchange.

    The underlying httpx exception, when there is one, is chained as __cause__.
    """


class CircuitOpenError(TransportError):
    """Circuit breaker is open and rejected the call before any attempt."""

    def __init__(self, command: str, retry_after: float | None = None) -> None:
        self.command, self.retry_after = command, retry_after
        hint = f", retry in {retry_after:.1f}s" if retry_after is not None else ""
        super().__init__(f"circuit '{command}' is open{hint}")


class RequestError(AccountClientError):
    """API responded with an error status.

    Attributes:
        status_code: HTTP status returned by the API
        message: Error message from the body; empty when the API sent none
    """

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code, self.message = status_code, message
        super().__init__(f"status {status_code}: error: {message}")

    @property
    def code(self) -> ErrorCode:
        return code_for_status(self.status_code)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def __repr__(self) -> str:
        return f"RequestError(status_code={self.status_code}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestError):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    def __hash__(self) -> int:
        return hash((self.status_code, self.message))


class ResponseDecodeError(AccountClientError):
    """Successful response body could not be decoded."""
