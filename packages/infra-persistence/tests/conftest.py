"""Shared fixtures for infra-persistence tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from lectern.infra.persistence.database import DatabaseManager, DatabaseSettings
from lectern.infra.persistence.record_store import SqlAlchemyRecordStore
from lectern.infra.persistence.schema import metadata

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


@pytest_asyncio.fixture(loop_scope="function")
async def sqlite_manager(tmp_path: Path) -> AsyncIterator[DatabaseManager]:
    """File-backed SQLite with the platform schema and enforced foreign keys."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'lectern.db'}"
    manager = DatabaseManager(DatabaseSettings(url=url))
    async with manager.get_engine().begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture()
def sql_store(sqlite_manager: DatabaseManager) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(sqlite_manager.get_session_factory())


@pytest.fixture()
def insert_rows(sqlite_manager: DatabaseManager):  # type: ignore[no-untyped-def]
    """Insert rows into a platform table: ``await insert_rows("users", [{...}])``."""

    async def insert(table_name: str, rows: list[dict]) -> None:  # type: ignore[type-arg]
        table = metadata.tables[table_name]
        async with sqlite_manager.get_engine().begin() as conn:
            await conn.execute(table.insert(), rows)

    return insert
