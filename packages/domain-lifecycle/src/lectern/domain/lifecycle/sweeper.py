"""Out-of-band reconciliation between storage and live records.

The sweeper lists one storage namespace, subtracts every key still
referenced by a live record, and deletes what is left. It never takes the
cascade lock. Instead, an object is only eligible once it is older than a
grace window, and each candidate is re-checked against the record store
immediately before it is deleted. A key referenced by a record created (or
about to be deleted) while the sweep is running therefore survives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from lectern.foundation.domain.deletion_value_objects import ReferenceSlot, StoredObject
    from lectern.foundation.domain.ports.record_store import RecordStorePort
    from lectern.foundation.domain.ports.storage_namespace import StorageNamespacePort

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class SweepResult:
    """Counters for one sweep of one namespace.

    Attributes:
        namespace: Label of the swept namespace.
        scanned: Objects listed.
        deleted: Orphans removed.
        skipped_recent: Unreferenced objects younger than the grace window.
        skipped_referenced: Candidates found referenced on re-confirmation.
        failed: Orphans whose delete call failed.
        failed_keys: Keys counted in ``failed``.
    """

    namespace: str
    scanned: int = 0
    deleted: int = 0
    skipped_recent: int = 0
    skipped_referenced: int = 0
    failed: int = 0
    failed_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "scanned": self.scanned,
            "deleted": self.deleted,
            "skipped_recent": self.skipped_recent,
            "skipped_referenced": self.skipped_referenced,
            "failed": self.failed,
            "failed_keys": list(self.failed_keys),
        }


class OrphanSweeper:
    """Removes objects no live record references.

    Args:
        namespace: Storage namespace to sweep.
        store: Record store holding the live references.
        slots: Reference slots that may point into ``namespace``.
        grace_period: Minimum object age before it may be deleted.
        clock: Returns the current aware UTC time. Injected for tests.
    """

    def __init__(
        self,
        namespace: StorageNamespacePort,
        store: RecordStorePort,
        slots: Sequence[ReferenceSlot],
        *,
        grace_period: timedelta = DEFAULT_GRACE_PERIOD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._namespace = namespace
        self._store = store
        self._slots = tuple(slots)
        self._grace_period = grace_period
        self._clock = clock

    @property
    def namespace(self) -> str:
        return self._namespace.name

    async def sweep(self) -> SweepResult:
        """Scan the namespace once and delete confirmed orphans."""
        result = SweepResult(namespace=self._namespace.name)
        objects = await self._namespace.list_objects()
        referenced = await self._referenced_object_keys()
        cutoff = self._clock() - self._grace_period

        for stored in objects:
            result.scanned += 1
            if stored.key in referenced:
                continue
            if not self._is_old_enough(stored, cutoff):
                result.skipped_recent += 1
                continue
            if await self._still_referenced(stored.key):
                result.skipped_referenced += 1
                continue
            outcome = await self._namespace.delete(stored.key)
            if outcome.succeeded:
                result.deleted += 1
            else:
                result.failed += 1
                result.failed_keys.append(stored.key)
                logger.warning(
                    "orphan_delete_failed",
                    extra={
                        "namespace": result.namespace,
                        "key": stored.key,
                        "status": str(outcome.status),
                        "detail": outcome.detail,
                    },
                )

        logger.info("orphan_sweep_completed", extra=result.to_dict())
        return result

    async def _referenced_object_keys(self) -> set[str]:
        keys = await self._store.referenced_keys(self._slots)
        resolved = (self._namespace.resolve_key(key) for key in keys)
        return {key for key in resolved if key is not None}

    async def _still_referenced(self, key: str) -> bool:
        for form in self._namespace.reference_forms(key):
            if await self._store.is_key_referenced(self._slots, form):
                return True
        return False

    @staticmethod
    def _is_old_enough(stored: StoredObject, cutoff: datetime) -> bool:
        # Unknown age is treated as recent.
        if stored.last_modified is None:
            return False
        last_modified = stored.last_modified
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=UTC)
        return last_modified <= cutoff
