"""In-process cascade lock.

Suitable for a single worker process and for tests. Multi-process
deployments use ``lectern.infra.persistence.cascade_lock.RedisCascadeLock``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from lectern.foundation.domain.exceptions import CascadeInProgressError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from lectern.foundation.domain.deletion_value_objects import EntityKind


def lock_key(kind: EntityKind | str, entity_id: str) -> str:
    """Canonical lock key for one entity."""
    return f"{kind}:{entity_id}"


class InProcessCascadeLock:
    """Non-blocking, all-or-nothing lock over a set of keys.

    Acquisition is atomic with respect to other coroutines on the same
    event loop: keys are checked and claimed without an intervening await.
    """

    def __init__(self) -> None:
        self._held: set[str] = set()

    @property
    def held(self) -> frozenset[str]:
        return frozenset(self._held)

    @asynccontextmanager
    async def hold(self, keys: Sequence[str]) -> AsyncIterator[None]:
        wanted = sorted(set(keys))
        for key in wanted:
            if key in self._held:
                raise CascadeInProgressError(key)
        self._held.update(wanted)
        try:
            yield
        finally:
            self._held.difference_update(wanted)
