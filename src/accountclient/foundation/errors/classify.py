"""Turn API error responses into RequestError.

The API is not consistent about error bodies: most 4xx/5xx answers carry
``{"error_message": "..."}``, some carry free text, and 404s usually carry
nothing at all. Whatever shape arrives, the caller gets a RequestError with
the original status code.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .errors import RequestError


class ErrorResponseBody(BaseModel):
    """Documented error body shape."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    error_message: str | None = None


# A JSON null decodes to None, like an object without the field
_ErrorBodyAdapter: TypeAdapter[ErrorResponseBody | None] = TypeAdapter(ErrorResponseBody | None)


def classify(body: bytes | None, status_code: int) -> RequestError:
    """Build a RequestError from a failed response's body and status.

    Any JSON object or ``null`` counts as the documented shape, so ``{}``,
    ``null`` and ``{"error_message": null}`` all give an empty message.
    Bodies that are not JSON, or JSON of another shape (a list, a non-string
    ``error_message``), become the message as raw text.

    Args:
        body: Raw response body, possibly empty
        status_code: HTTP status of the response (expected >= 400)

    Returns:
        RequestError carrying status_code and the parsed or raw message
    """
    raw = body or b""
    try:
        parsed = _ErrorBodyAdapter.validate_json(raw)
    except ValidationError:
        return RequestError(status_code, raw.decode("utf-8", errors="replace"))
    return RequestError(status_code, (parsed.error_message if parsed is not None else None) or "")
