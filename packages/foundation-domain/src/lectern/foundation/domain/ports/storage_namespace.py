"""Port interface for listing and pruning a storage namespace.

Used by the orphan sweeper. A namespace is one physical place binary
objects live (an object-storage zone, a video library, a local directory).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from lectern.foundation.domain.deletion_value_objects import DeleteResult, StoredObject


@runtime_checkable
class StorageNamespacePort(Protocol):
    """Port for enumerating and deleting the objects of one namespace."""

    @property
    def name(self) -> str:
        """Short namespace label used in logs and sweep results."""
        ...

    async def list_objects(self) -> list[StoredObject]:
        """Return every object currently present in the namespace."""
        ...

    def resolve_key(self, reference_key: str) -> str | None:
        """Map a key as stored on a record to this namespace's object key.

        Returns:
            The namespace-relative key, or None when the reference does not
            live in this namespace.
        """
        ...

    def reference_forms(self, key: str) -> tuple[str, ...]:
        """Return every spelling a record may use to reference ``key``.

        Inverse of :meth:`resolve_key`, used to re-confirm a candidate
        orphan against the record store right before deleting it.
        """
        ...

    async def delete(self, key: str) -> DeleteResult:
        """Delete one object by its namespace-relative key."""
        ...
