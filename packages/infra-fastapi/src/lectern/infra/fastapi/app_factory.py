"""FastAPI application factory.

:func:`create_app` wires explicitly passed routers, middleware, error
handlers and lifespan hooks into one application. RFC 7807 error handlers
and CORS are always installed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from lectern.infra.fastapi.error_handlers import register_exception_handlers
from lectern.infra.fastapi.lifespan import compose_lifespan
from lectern.infra.fastapi.middleware import request_context, request_id
from lectern.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi import APIRouter

    from lectern.foundation.application import (
        ErrorHandlerContribution,
        LifespanContribution,
        MiddlewareContribution,
    )

logger = logging.getLogger(__name__)

DEFAULT_MIDDLEWARE: tuple[MiddlewareContribution, ...] = (
    request_id.contribution,
    request_context.contribution,
)


def create_app(
    settings: AppSettings | None = None,
    *,
    routers: Sequence[APIRouter] = (),
    middleware: Sequence[MiddlewareContribution] = DEFAULT_MIDDLEWARE,
    lifespan_hooks: Sequence[LifespanContribution] = (),
    error_handlers: Sequence[ErrorHandlerContribution] = (),
) -> FastAPI:
    """Create a configured FastAPI application.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        routers: Routers to include.
        middleware: Middleware contributions. Lower priority runs outermost.
        lifespan_hooks: Lifespan contributions, started in priority order.
        error_handlers: Handlers registered after (and so overriding) the
            default RFC 7807 handlers.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=None,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(lifespan_hooks),
    )

    # Starlette wraps in LIFO order, so add innermost first.
    for mw in sorted(middleware, key=lambda m: m.priority, reverse=True):
        app.add_middleware(mw.middleware_class, **mw.kwargs)
        logger.debug(
            "middleware_registered",
            extra={"middleware": mw.middleware_class.__name__, "priority": mw.priority},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )

    register_exception_handlers(app)
    for eh in error_handlers:
        app.add_exception_handler(eh.exception_class, eh.handler)

    for router in routers:
        app.include_router(router)

    return app
