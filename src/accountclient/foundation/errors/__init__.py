"""Error types and response classification for the account client."""

from .classify import ErrorResponseBody, classify
from .errors import (
    AccountClientError,
    CircuitOpenError,
    ConfigurationError,
    ErrorCode,
    RequestError,
    ResponseDecodeError,
    TransportError,
    code_for_status,
)

__all__ = [
    "AccountClientError", "ConfigurationError", "TransportError", "CircuitOpenError",
    "RequestError", "ResponseDecodeError",
    "ErrorCode", "code_for_status",
    "ErrorResponseBody", "classify",
]
