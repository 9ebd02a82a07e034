"""Distributed cascade lock on Redis.

Each entity key becomes one ``redis.asyncio`` lock with a TTL, so a
crashed worker cannot hold a subgraph forever. Keys are acquired in
sorted order and released in reverse; if any key is unavailable, the
ones already taken are released and ``CascadeInProgressError`` is raised.

While the body runs, a background task resets every lock's TTL at a fixed
interval, so a cascade that outlives one TTL keeps its keys.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from redis.exceptions import LockError

from lectern.foundation.domain.exceptions import CascadeInProgressError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from lectern.infra.persistence.redis_client import RedisFactory

logger = logging.getLogger(__name__)

LOCK_NAMESPACE = "lectern:cascade:"


class RedisCascadeLock:
    """All-or-nothing advisory lock over entity keys.

    Args:
        redis_factory: Source of the async Redis client.
        ttl_seconds: Lock expiry. Renewed while the lock is held, so it only
            bounds how long a crashed worker keeps the keys.
        wait_seconds: How long to wait for each held key. 0 fails immediately.
        renew_interval: Seconds between TTL renewals. Defaults to a third
            of ``ttl_seconds``.
    """

    def __init__(
        self,
        redis_factory: RedisFactory,
        *,
        ttl_seconds: int = 300,
        wait_seconds: float = 0.0,
        renew_interval: float | None = None,
    ) -> None:
        self._factory = redis_factory
        self._ttl = ttl_seconds
        self._wait = wait_seconds
        self._renew_interval = renew_interval or ttl_seconds / 3

    @asynccontextmanager
    async def hold(self, keys: Sequence[str]) -> AsyncIterator[None]:
        client = await self._factory.get_client()
        acquired: list[Any] = []
        try:
            for key in sorted(set(keys)):
                lock = client.lock(
                    LOCK_NAMESPACE + key,
                    timeout=self._ttl,
                    blocking=self._wait > 0,
                    blocking_timeout=self._wait or None,
                )
                if not await lock.acquire():
                    raise CascadeInProgressError(key)
                acquired.append(lock)
            renewer = asyncio.create_task(self._keep_alive(acquired))
            try:
                yield
            finally:
                renewer.cancel()
                await asyncio.gather(renewer, return_exceptions=True)
        finally:
            for lock in reversed(acquired):
                try:
                    await lock.release()
                except LockError:
                    logger.warning(
                        "cascade_lock_release_failed",
                        extra={"lock": getattr(lock, "name", None)},
                        exc_info=True,
                    )

    async def _keep_alive(self, locks: list[Any]) -> None:
        while True:
            await asyncio.sleep(self._renew_interval)
            for lock in locks:
                try:
                    await lock.reacquire()
                except LockError:
                    logger.error(
                        "cascade_lock_renewal_failed",
                        extra={"lock": getattr(lock, "name", None)},
                        exc_info=True,
                    )
