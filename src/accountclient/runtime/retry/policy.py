"""Retry policies deciding whether a failed attempt is worth repeating.

A policy sees the outcome of one attempt, an exception and/or an
``httpx.Response``, and answers whether to try again. It also fixes the
retry budget: the number of attempts allowed after the first.

The default policy retries transport failures and 5xx responses only.
Anything else implementing the RetryPolicy protocol can replace it.

Example:
    >>> class RetryRateLimited(DefaultRetryPolicy):
    ...     def should_retry(self, error, response):
    ...         if response is not None and response.status_code == 429:
    ...             return True
    ...         return super().should_retry(error, response)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Iterator


@runtime_checkable
class RetryPolicy(Protocol):
    """Protocol for retry decisions."""

    @property
    def max_retries(self) -> int:
        """Retries allowed after the first attempt (0 = single attempt)."""
        ...

    def should_retry(self, error: BaseException | None, response: httpx.Response | None) -> bool:
        """Whether the outcome of an attempt warrants another one."""
        ...


def _causes(error: BaseException) -> Iterator[BaseException]:
    """Walk an exception and its explicit __cause__ chain."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def is_transport_error(error: BaseException | None) -> bool:
    """Whether the error, or anything it was raised from, is an httpx transport failure."""
    if error is None:
        return False
    return any(isinstance(e, httpx.TransportError) for e in _causes(error))


class DefaultRetryPolicy(BaseModel):
    """Retry on transport errors and server-side (5xx) responses.

    Decision table:
        no error, no response        -> False
        transport error (any resp.)  -> True
        response status >= 500       -> True
        anything else (4xx, other)   -> False

    Attributes:
        max_retries: Retries allowed after the first attempt (0 = no retries)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Default Retry Policy",
            "examples": [{"max_retries": 3}],
        },
    )

    max_retries: Annotated[int, Field(ge=0)] = 0

    def should_retry(self, error: BaseException | None, response: httpx.Response | None) -> bool:
        if error is None and response is None:
            return False
        if is_transport_error(error):
            return True
        return response is not None and response.status_code >= 500

    def __hash__(self) -> int:
        return hash(self.max_retries)


# Shared single-attempt policy
NO_RETRY = DefaultRetryPolicy(max_retries=0)
