"""Object graph for the course platform.

Builds the deletion service and the orphan sweepers from their
collaborators, and the lifespan hook that assembles them from the
running application's persistence and storage resources.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from lectern.domain.lifecycle.authorization import RolePermissionPolicy
from lectern.domain.lifecycle.cascade_executor import CascadeExecutor
from lectern.domain.lifecycle.deletion_service import EntityDeletionService
from lectern.domain.lifecycle.graph_reader import EntityGraphReader
from lectern.domain.lifecycle.planner import DeletionPlanner
from lectern.domain.lifecycle.settings import LifecycleSettings, get_lifecycle_settings
from lectern.domain.lifecycle.sweeper import OrphanSweeper
from lectern.foundation.application import LifespanContribution
from lectern.foundation.application.contributions import LIFESPAN_PRIORITY_LIFECYCLE
from lectern.infra.persistence.cascade_lock import RedisCascadeLock
from lectern.infra.persistence.database import get_database_manager
from lectern.infra.persistence.dependency_graph import build_dependency_graph
from lectern.infra.persistence.record_store import SqlAlchemyRecordStore
from lectern.infra.persistence.redis_client import get_redis_factory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from lectern.domain.lifecycle.dependency_graph import DependencyGraph
    from lectern.foundation.domain.ports import (
        AuthorizationPolicyPort,
        CascadeLockPort,
        RecordStorePort,
        StorageGatewayPort,
        StorageNamespacePort,
    )

logger = logging.getLogger(__name__)


def build_deletion_service(
    store: RecordStorePort,
    gateway: StorageGatewayPort,
    lock: CascadeLockPort,
    *,
    graph: DependencyGraph | None = None,
    settings: LifecycleSettings | None = None,
    authorization: AuthorizationPolicyPort | None = None,
) -> EntityDeletionService:
    """Assemble planner, reader, executor and service.

    Args:
        store: Record store holding the platform tables.
        gateway: Storage gateway for external references.
        lock: Cascade lock shared by every worker.
        graph: Dependency graph. Defaults to the platform schema graph.
        settings: Timeouts and concurrency. Defaults to the environment.
        authorization: Deletion policy. Defaults to role permissions.
    """
    settings = settings or get_lifecycle_settings()
    planner = DeletionPlanner(graph or build_dependency_graph())
    reader = EntityGraphReader(planner, store)
    executor = CascadeExecutor(
        reader,
        store,
        gateway,
        external_timeout=settings.external_delete_timeout,
        max_concurrent_external=settings.max_concurrent_external_deletes,
    )
    return EntityDeletionService(
        planner,
        reader,
        executor,
        lock,
        authorization if authorization is not None else RolePermissionPolicy(),
    )


def build_sweepers(
    store: RecordStorePort,
    namespaces: Iterable[StorageNamespacePort],
    *,
    graph: DependencyGraph | None = None,
    settings: LifecycleSettings | None = None,
) -> list[OrphanSweeper]:
    """One sweeper per storage namespace, all reading the same reference slots."""
    settings = settings or get_lifecycle_settings()
    slots = (graph or build_dependency_graph()).reference_slots
    return [
        OrphanSweeper(namespace, store, slots, grace_period=settings.sweep_grace_period)
        for namespace in namespaces
    ]


@asynccontextmanager
async def _lifecycle_lifespan(app: Any) -> AsyncIterator[None]:
    """Expose ``app.state.deletion_service``. Needs the storage hook to run first."""
    settings = get_lifecycle_settings()
    store = SqlAlchemyRecordStore(get_database_manager().get_session_factory())
    lock = RedisCascadeLock(
        get_redis_factory(),
        ttl_seconds=settings.lock_ttl_seconds,
        wait_seconds=settings.lock_wait_seconds,
    )
    app.state.deletion_service = build_deletion_service(
        store, app.state.storage_gateway, lock, settings=settings
    )
    logger.info("deletion_service_ready")
    yield


lifespan_contribution = LifespanContribution(
    hook=_lifecycle_lifespan,
    priority=LIFESPAN_PRIORITY_LIFECYCLE,
)
