"""ASGI middleware for the lectern FastAPI integration."""

from lectern.infra.fastapi.middleware.request_context import RequestContextMiddleware
from lectern.infra.fastapi.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
]
