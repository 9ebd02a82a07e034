"""``X-Request-ID`` propagation.

Every request gets an id: the client's when it sent a well-formed UUID,
a fresh UUID4 otherwise. The id is bound to structlog's context vars for
the duration of the request and echoed on the response, so a problem
response and the log lines behind it can be matched up.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING

import structlog
from starlette.datastructures import Headers, MutableHeaders

from lectern.foundation.application import MiddlewareContribution

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Id of the request being served, or ``""`` outside of one."""
    return request_id_ctx.get()


def _is_valid_uuid(value: str | None) -> bool:
    try:
        uuid.UUID(value or "")
    except ValueError:
        return False
    return True


def _resolve_request_id(scope: Scope) -> str:
    candidate = Headers(scope=scope).get(REQUEST_ID_HEADER)
    return candidate if candidate and _is_valid_uuid(candidate) else str(uuid.uuid4())


class RequestIdMiddleware:
    """Pure ASGI middleware assigning and echoing the request id."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = _resolve_request_id(scope)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        token = request_id_ctx.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_ctx.reset(token)


contribution = MiddlewareContribution(middleware_class=RequestIdMiddleware, priority=10)
