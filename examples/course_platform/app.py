"""Course platform application factory.

Usage::

    from examples.course_platform.app import create_course_platform_app

    app = create_course_platform_app()

Tests pass a prebuilt ``deletion_service`` and no lifespan hooks, which
keeps PostgreSQL, Redis and Bunny out of the picture.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lectern.infra.fastapi import AppSettings, create_app, health_router
from lectern.infra.observability import lifespan_contribution as observability_lifespan
from lectern.infra.persistence.lifespan import lifespan_contribution as persistence_lifespan
from lectern.infra.storage import lifespan_contribution as storage_lifespan

from .router import router as entities_router
from .wiring import lifespan_contribution as lifecycle_lifespan

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi import FastAPI

    from lectern.domain.lifecycle.deletion_service import EntityDeletionService
    from lectern.foundation.application import LifespanContribution

DEFAULT_LIFESPAN_HOOKS: tuple[LifespanContribution, ...] = (
    observability_lifespan,
    persistence_lifespan,
    storage_lifespan,
    lifecycle_lifespan,
)


def create_course_platform_app(
    *,
    deletion_service: EntityDeletionService | None = None,
    lifespan_hooks: Sequence[LifespanContribution] | None = None,
) -> FastAPI:
    """Create the course platform API.

    Args:
        deletion_service: Prebuilt service. When given, it is used as is and
            the default lifespan hooks are not installed.
        lifespan_hooks: Overrides the lifespan hooks.
    """
    if lifespan_hooks is None:
        lifespan_hooks = () if deletion_service is not None else DEFAULT_LIFESPAN_HOOKS
    app = create_app(
        settings=AppSettings(title="Course Platform", version="0.1.0"),
        routers=[entities_router, health_router],
        lifespan_hooks=lifespan_hooks,
    )
    if deletion_service is not None:
        app.state.deletion_service = deletion_service
    return app
