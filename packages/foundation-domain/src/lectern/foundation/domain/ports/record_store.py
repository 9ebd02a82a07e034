"""Port interface for the relational record store.

The deletion core never issues SQL. It addresses rows by entity kind and
id through this protocol; adapters translate calls into queries against
whatever schema backs the kinds. Every call is individually atomic and
no multi-kind transaction is assumed.

Adapters must raise ``RecordStoreError`` for driver-level failures so the
domain layer stays independent of database exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from lectern.foundation.domain.deletion_value_objects import (
        EntityKind,
        OwnedReference,
        ReferenceSlot,
    )


@runtime_checkable
class RecordStorePort(Protocol):
    """Port for kind/id addressed record access.

    Example:
        >>> async def course_exists(store: RecordStorePort, course_id: str) -> bool:
        ...     return await store.find_one(EntityKind.COURSE, course_id) is not None
    """

    async def find_one(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None:
        """Return the row for ``entity_id`` as a column mapping, or None."""
        ...

    async def find_child_ids(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> list[str]:
        """Return ids of ``kind`` rows whose ``fk_column`` is in ``parent_ids``.

        Args:
            kind: Child entity kind.
            fk_column: Foreign key column on the child.
            parent_ids: Parent identifiers. An empty sequence yields an empty list.

        Returns:
            Matching child ids in a stable order.
        """
        ...

    async def load_references(
        self,
        kind: EntityKind,
        entity_ids: Sequence[str],
        slots: Sequence[ReferenceSlot],
    ) -> list[OwnedReference]:
        """Return the non-empty external references stored on the given rows."""
        ...

    async def delete_many(self, kind: EntityKind, entity_ids: Sequence[str]) -> int:
        """Delete rows by id.

        Ids that no longer exist are ignored, which keeps the call idempotent.

        Returns:
            Number of rows actually removed.

        Raises:
            RecordStoreError: Constraint violation or connection failure.
        """
        ...

    async def nullify(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> int:
        """Set ``fk_column`` to NULL on rows pointing at ``parent_ids``.

        Returns:
            Number of rows updated.

        Raises:
            RecordStoreError: Constraint violation or connection failure.
        """
        ...

    async def referenced_keys(self, slots: Iterable[ReferenceSlot]) -> set[str]:
        """Return every non-empty key stored in any of ``slots`` on live rows."""
        ...

    async def is_key_referenced(self, slots: Iterable[ReferenceSlot], key: str) -> bool:
        """Return True when any live row stores ``key`` in one of ``slots``."""
        ...
