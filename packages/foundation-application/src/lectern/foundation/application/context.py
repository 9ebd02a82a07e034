"""Request-scoped context shared by middleware, services and log records.

The HTTP layer stores who is acting and the correlation id of the current
request in a ContextVar. Code deep in a cascade can read it back without
the values being threaded through every call.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Acting user and correlation id of the request being served.

    Attributes:
        user_id: Value of the ``X-User-ID`` header, empty when anonymous.
        correlation_id: Request id echoed in logs and problem responses.
    """

    user_id: str
    correlation_id: str


request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is read outside of a request."""

    def __init__(self) -> None:
        super().__init__("No request context is set; is RequestContextMiddleware installed?")


def get_current_context() -> RequestContext:
    """Return the active request context.

    Raises:
        NoRequestContextError: Outside of a request.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_optional_context() -> RequestContext | None:
    return request_context.get()


def set_request_context(user_id: str, correlation_id: str) -> Token[RequestContext | None]:
    """Install a context for the current task; reset it with the returned token."""
    return request_context.set(RequestContext(user_id=user_id, correlation_id=correlation_id))


def clear_request_context(token: Token[RequestContext | None]) -> None:
    request_context.reset(token)
