"""Storage lifespan hook.

Builds the storage gateway once at startup and exposes it as
``app.state.storage_gateway``. The shared HTTP clients are closed on
shutdown.

Priority 100: after persistence (75), before the task broker (150).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from lectern.foundation.application import LifespanContribution
from lectern.foundation.application.contributions import LIFESPAN_PRIORITY_STORAGE
from lectern.infra.storage.gateway import StorageGateway
from lectern.infra.storage.settings import get_storage_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _storage_lifespan(app: Any) -> AsyncIterator[None]:
    settings = get_storage_settings()
    gateway = StorageGateway.from_settings(settings)
    app.state.storage_gateway = gateway
    logger.info(
        "storage_gateway_ready",
        extra={
            "storage_configured": settings.storage_configured,
            "stream_configured": settings.stream_configured,
        },
    )
    try:
        yield
    finally:
        await gateway.aclose()
        logger.info("storage_gateway_closed")


lifespan_contribution = LifespanContribution(
    hook=_storage_lifespan,
    priority=LIFESPAN_PRIORITY_STORAGE,
)
