"""TaskIQ worker entry point with the scheduled orphan sweep.

Usage::

    taskiq worker examples.course_platform.worker:broker
    taskiq scheduler examples.course_platform.worker:scheduler --skip-first-run
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lectern.infra.observability import configure_logging
from lectern.infra.persistence.database import get_database_manager
from lectern.infra.persistence.record_store import SqlAlchemyRecordStore
from lectern.infra.storage import StorageGateway, get_storage_settings
from lectern.infra.taskiq import broker, get_taskiq_settings, register_sweep_task, scheduler

from .wiring import build_sweepers

if TYPE_CHECKING:
    from lectern.domain.lifecycle.sweeper import OrphanSweeper

configure_logging()


def sweepers_from_environment() -> list[OrphanSweeper]:
    """Sweepers for every configured namespace, built from environment settings."""
    store = SqlAlchemyRecordStore(get_database_manager().get_session_factory())
    gateway = StorageGateway.from_settings(get_storage_settings())
    return build_sweepers(store, gateway.namespaces())


sweep_orphans = register_sweep_task(
    broker,
    sweepers_from_environment,
    cron=get_taskiq_settings().sweep_schedule,
)

__all__ = ["broker", "scheduler", "sweep_orphans"]
