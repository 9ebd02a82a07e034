"""SQLAlchemy implementation of the record store port.

Each public call runs in its own transaction. Driver errors are wrapped in
``RecordStoreError`` so the cascade executor can treat them as fatal
relational failures without importing SQLAlchemy.

Usage:
    manager = get_database_manager()
    store = SqlAlchemyRecordStore(manager.get_session_factory())
    await store.delete_many(EntityKind.LESSON, ["l1", "l2"])
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from lectern.foundation.domain.deletion_value_objects import (
    ExternalReference,
    OwnedReference,
)
from lectern.foundation.domain.exceptions import RecordStoreError
from lectern.infra.persistence.schema import metadata as platform_metadata

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import MetaData, Table
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from lectern.foundation.domain.deletion_value_objects import EntityKind, ReferenceSlot

logger = logging.getLogger(__name__)

# Bound on parameters per IN (...) clause.
IN_CLAUSE_CHUNK = 500


def _chunks(values: Sequence[str], size: int = IN_CLAUSE_CHUNK) -> Iterable[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class SqlAlchemyRecordStore:
    """Kind/id addressed access to the platform tables.

    Args:
        session_factory: Async session factory (see ``DatabaseManager``).
        metadata: Table metadata. Defaults to the platform schema.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata: MetaData | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._metadata = metadata if metadata is not None else platform_metadata

    def _table(self, kind: EntityKind) -> Table:
        try:
            return self._metadata.tables[str(kind)]
        except KeyError:
            msg = f"No table for entity kind {kind}"
            raise RecordStoreError(msg, {"kind": str(kind)}) from None

    def _wrap(self, operation: str, kind: str | None, exc: SQLAlchemyError) -> RecordStoreError:
        logger.warning(
            "record_store_error",
            extra={"operation": operation, "kind": kind, "error": str(exc)},
        )
        return RecordStoreError(
            f"{operation} failed: {exc.__class__.__name__}: {exc}",
            {"operation": operation, "kind": kind},
        )

    async def find_one(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None:
        table = self._table(kind)
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(table).where(table.c.id == entity_id))
                row = result.first()
        except SQLAlchemyError as exc:
            raise self._wrap("find_one", str(kind), exc) from exc
        return None if row is None else dict(row._mapping)

    async def find_child_ids(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> list[str]:
        if not parent_ids:
            return []
        table = self._table(kind)
        column = table.c[fk_column]
        found: list[str] = []
        try:
            async with self._session_factory() as session:
                for chunk in _chunks(list(parent_ids)):
                    result = await session.execute(
                        select(table.c.id).where(column.in_(chunk)).order_by(table.c.id)
                    )
                    found.extend(result.scalars().all())
        except SQLAlchemyError as exc:
            raise self._wrap("find_child_ids", str(kind), exc) from exc
        return found

    async def load_references(
        self,
        kind: EntityKind,
        entity_ids: Sequence[str],
        slots: Sequence[ReferenceSlot],
    ) -> list[OwnedReference]:
        if not entity_ids or not slots:
            return []
        table = self._table(kind)
        columns = [table.c[slot.column] for slot in slots]
        rows: dict[str, Any] = {}
        try:
            async with self._session_factory() as session:
                for chunk in _chunks(list(entity_ids)):
                    result = await session.execute(
                        select(table.c.id, *columns).where(table.c.id.in_(chunk))
                    )
                    for row in result:
                        rows[row.id] = row._mapping
        except SQLAlchemyError as exc:
            raise self._wrap("load_references", str(kind), exc) from exc

        references: list[OwnedReference] = []
        for entity_id in entity_ids:
            mapping = rows.get(entity_id)
            if mapping is None:
                continue
            for slot in slots:
                key = mapping[slot.column]
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
        if not entity_ids:
            return 0
        table = self._table(kind)
        deleted = 0
        try:
            async with self._session_factory.begin() as session:
                for chunk in _chunks(list(entity_ids)):
                    result = await session.execute(delete(table).where(table.c.id.in_(chunk)))
                    deleted += result.rowcount or 0
        except SQLAlchemyError as exc:
            raise self._wrap("delete_many", str(kind), exc) from exc
        return deleted

    async def nullify(
        self,
        kind: EntityKind,
        fk_column: str,
        parent_ids: Sequence[str],
    ) -> int:
        if not parent_ids:
            return 0
        table = self._table(kind)
        column = table.c[fk_column]
        updated = 0
        try:
            async with self._session_factory.begin() as session:
                for chunk in _chunks(list(parent_ids)):
                    result = await session.execute(
                        update(table).where(column.in_(chunk)).values({fk_column: None})
                    )
                    updated += result.rowcount or 0
        except SQLAlchemyError as exc:
            raise self._wrap("nullify", str(kind), exc) from exc
        return updated

    async def referenced_keys(self, slots: Iterable[ReferenceSlot]) -> set[str]:
        by_table: dict[EntityKind, list[str]] = defaultdict(list)
        for slot in slots:
            by_table[slot.owner].append(slot.column)
        keys: set[str] = set()
        try:
            async with self._session_factory() as session:
                for owner, column_names in by_table.items():
                    table = self._table(owner)
                    for name in column_names:
                        column = table.c[name]
                        result = await session.execute(
                            select(column).where(column.is_not(None)).distinct()
                        )
                        keys.update(value for value in result.scalars() if value)
        except SQLAlchemyError as exc:
            raise self._wrap("referenced_keys", None, exc) from exc
        return keys

    async def is_key_referenced(self, slots: Iterable[ReferenceSlot], key: str) -> bool:
        try:
            async with self._session_factory() as session:
                for slot in slots:
                    column = self._table(slot.owner).c[slot.column]
                    result = await session.execute(select(column).where(column == key).limit(1))
                    if result.first() is not None:
                        return True
        except SQLAlchemyError as exc:
            raise self._wrap("is_key_referenced", None, exc) from exc
        return False
