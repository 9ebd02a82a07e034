"""Populates :class:`RequestContext` for each HTTP request.

The acting user comes from ``X-User-ID`` (set by the gateway in front of
the app) and the correlation id is the request id, so this middleware
must sit inside :class:`RequestIdMiddleware`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.datastructures import Headers

from lectern.foundation.application import MiddlewareContribution
from lectern.foundation.application.context import (
    clear_request_context,
    set_request_context,
)
from lectern.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

USER_ID_HEADER = "X-User-ID"


class RequestContextMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        user_id = Headers(scope=scope).get(USER_ID_HEADER, "")
        token = set_request_context(user_id=user_id, correlation_id=get_request_id())
        structlog.contextvars.bind_contextvars(user_id=user_id or None)
        try:
            await self.app(scope, receive, send)
        finally:
            structlog.contextvars.unbind_contextvars("user_id")
            clear_request_context(token)


contribution = MiddlewareContribution(middleware_class=RequestContextMiddleware, priority=200)
