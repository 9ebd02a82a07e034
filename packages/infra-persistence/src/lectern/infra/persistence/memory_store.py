"""In-memory record store with foreign-key enforcement.

Behaves like the SQLAlchemy store against a database with enforced
foreign keys: inserting a row that points at a missing parent, or
deleting a parent that still has children, raises ``RecordStoreError``.
Used by the example application and throughout the test suites.

Usage:
    store = InMemoryRecordStore(build_dependency_graph())
    store.insert(EntityKind.USER, {"id": "u1", "image_key": None})
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from lectern.foundation.domain.deletion_value_objects import (
    EntityKind,
    ExternalReference,
    OwnedReference,
)
from lectern.foundation.domain.exceptions import RecordStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from lectern.domain.lifecycle.dependency_graph import DependencyGraph
    from lectern.foundation.domain.deletion_value_objects import ReferenceSlot

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """Dict-backed rows keyed by kind then id.

    Every call is recorded in :attr:`calls` as ``(operation, kind)`` so
    tests can assert on the exact sequence of relational operations.

    Args:
        graph: Dependency graph whose edges are enforced as foreign keys.
    """

    def __init__(self, graph: DependencyGraph) -> None:
        self._graph = graph
        self._rows: dict[EntityKind, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._injected: dict[tuple[str, EntityKind], str] = {}
        self.calls: list[tuple[str, EntityKind]] = []

    # -- Fixture helpers ---------------------------------------------------

    def insert(self, kind: EntityKind, row: dict[str, Any]) -> None:
        """Insert a row, checking every outgoing foreign key.

        Raises:
            RecordStoreError: Duplicate id or dangling foreign key.
        """
        entity_id = row["id"]
        if entity_id in self._rows[kind]:
            raise RecordStoreError(f"Duplicate {kind} id {entity_id}", {"kind": str(kind)})
        for edge in self._graph.edges_to(kind):
            parent_id = row.get(edge.fk_column)
            if parent_id is not None and parent_id not in self._rows[edge.parent]:
                raise RecordStoreError(
                    f"FOREIGN KEY constraint failed: {kind}.{edge.fk_column} -> {edge.parent}",
                    {"kind": str(kind), "fk_column": edge.fk_column, "parent_id": parent_id},
                )
        self._rows[kind][entity_id] = dict(row)

    def rows(self, kind: EntityKind) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows[kind].values()]

    def count(self, kind: EntityKind) -> int:
        return len(self._rows[kind])

    def exists(self, kind: EntityKind, entity_id: str) -> bool:
        return entity_id in self._rows[kind]

    def inject_failure(
        self,
        kind: EntityKind,
        operation: str = "delete_many",
        message: str = "connection lost",
    ) -> None:
        """Make the next ``operation`` call on ``kind`` raise RecordStoreError."""
        self._injected[(operation, kind)] = message

    def _record(self, operation: str, kind: EntityKind) -> None:
        self.calls.append((operation, kind))
        message = self._injected.pop((operation, kind), None)
        if message is not None:
            raise RecordStoreError(
                f"{operation} failed: {message}",
                {"operation": operation, "kind": str(kind)},
            )

    # -- RecordStorePort ---------------------------------------------------

    async def find_one(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None:
        self._record("find_one", kind)
        row = self._rows[kind].get(entity_id)
        return None if row is None else dict(row)

    async def find_child_ids(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> list[str]:
        self._record("find_child_ids", kind)
        wanted = set(parent_ids)
        return sorted(
            entity_id
            for entity_id, row in self._rows[kind].items()
            if row.get(fk_column) in wanted
        )

    async def load_references(
        self,
        kind: EntityKind,
        entity_ids: Sequence[str],
        slots: Sequence[ReferenceSlot],
    ) -> list[OwnedReference]:
        self._record("load_references", kind)
        references: list[OwnedReference] = []
        for entity_id in entity_ids:
            row = self._rows[kind].get(entity_id)
            if row is None:
                continue
            for slot in slots:
                key = row.get(slot.column)
                if key:
                    references.append(
                        OwnedReference(
                            reference=ExternalReference(kind=slot.kind, key=key),
                            owner_kind=kind,
                            owner_id=entity_id,
                        )
                    )
        return references

    async def delete_many(self, kind: EntityKind, entity_ids: Sequence[str]) -> int:
        self._record("delete_many", kind)
        doomed = {entity_id for entity_id in entity_ids if entity_id in self._rows[kind]}
        if not doomed:
            return 0
        for edge in self._graph.edges_from(kind):
            for child_id, row in self._rows[edge.child].items():
                if edge.child == kind and child_id in doomed:
                    continue
                if row.get(edge.fk_column) in doomed:
                    raise RecordStoreError(
                        f"FOREIGN KEY constraint failed: {edge.child}.{edge.fk_column} "
                        f"still references {kind}",
                        {"kind": str(kind), "child_kind": str(edge.child), "child_id": child_id},
                    )
        for entity_id in doomed:
            del self._rows[kind][entity_id]
        return len(doomed)

    async def nullify(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> int:
        self._record("nullify", kind)
        wanted = set(parent_ids)
        updated = 0
        for row in self._rows[kind].values():
            if row.get(fk_column) in wanted:
                row[fk_column] = None
                updated += 1
        return updated

    async def referenced_keys(self, slots: Iterable[ReferenceSlot]) -> set[str]:
        keys: set[str] = set()
        for slot in slots:
            for row in self._rows[slot.owner].values():
                value = row.get(slot.column)
                if value:
                    keys.add(value)
        return keys

    async def is_key_referenced(self, slots: Iterable[ReferenceSlot], key: str) -> bool:
        return any(
            row.get(slot.column) == key
            for slot in slots
            for row in self._rows[slot.owner].values()
        )
