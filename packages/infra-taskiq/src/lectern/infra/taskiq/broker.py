"""TaskIQ broker and scheduler configuration with Redis Stream.

Factory functions for the TaskIQ broker, result backend and scheduler,
configured to use Redis Stream for reliable delivery with acknowledgements.

Usage:
    # Start worker
    # taskiq worker examples.course_platform.worker:broker

    # Start scheduler (single instance only)
    # taskiq scheduler examples.course_platform.worker:scheduler --skip-first-run
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import (
    ListRedisScheduleSource,
    RedisAsyncResultBackend,
    RedisStreamBroker,
)

from lectern.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[Any]:
    """Get or create the TaskIQ result backend."""
    settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=settings.redis_url,
        result_ex_time=settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the TaskIQ broker with its result backend attached."""
    settings = get_taskiq_settings()
    return RedisStreamBroker(
        url=settings.redis_url,
        queue_name=f"{settings.stream_prefix}:lectern",
    ).with_result_backend(get_result_backend())


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    """Get or create the TaskIQ scheduler.

    Uses dual schedule sources:
    - LabelScheduleSource: discovers ``broker.task(schedule=[...])`` labels,
      which is how the orphan sweep is scheduled
    - ListRedisScheduleSource: runtime-configurable schedules stored in Redis

    WARNING: Only run ONE scheduler instance per deployment to avoid
    duplicate sweeps.
    """
    settings = get_taskiq_settings()
    _broker = get_broker()
    return TaskiqScheduler(
        broker=_broker,
        sources=[
            LabelScheduleSource(_broker),
            ListRedisScheduleSource(settings.redis_url),
        ],
    )


class _Lazy(Generic[T]):
    """Proxy that defers creation until first attribute access.

    Lets the taskiq CLI import ``module:broker`` without connecting
    to Redis at import time of unrelated modules.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._instance: T | None = None

    def _get(self) -> T:
        if self._instance is None:
            self._instance = self._factory()
        return self._instance

    def __getattr__(self, name: str) -> Any:
        return getattr(self._get(), name)


broker: RedisStreamBroker = _Lazy(get_broker)  # type: ignore[assignment]
result_backend: RedisAsyncResultBackend[Any] = _Lazy(  # type: ignore[assignment]
    get_result_backend
)
scheduler: TaskiqScheduler = _Lazy(get_scheduler)  # type: ignore[assignment]
