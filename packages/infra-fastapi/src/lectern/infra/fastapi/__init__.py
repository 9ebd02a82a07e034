"""Lectern Infra FastAPI -- RFC 7807 error handlers, middleware, app factory."""

from lectern.infra.fastapi._health import router as health_router
from lectern.infra.fastapi.app_factory import create_app
from lectern.infra.fastapi.error_handlers import ProblemDetail, register_exception_handlers
from lectern.infra.fastapi.lifespan import compose_lifespan
from lectern.infra.fastapi.middleware import (
    RequestContextMiddleware,
    RequestIdMiddleware,
    get_request_id,
)
from lectern.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "compose_lifespan",
    "create_app",
    "get_request_id",
    "health_router",
    "register_exception_handlers",
]
