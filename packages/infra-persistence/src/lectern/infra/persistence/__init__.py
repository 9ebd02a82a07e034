"""Lectern Infrastructure Persistence -- schema, record stores and locks."""

from lectern.infra.persistence.cascade_lock import RedisCascadeLock
from lectern.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
)
from lectern.infra.persistence.dependency_graph import build_dependency_graph, edges_from_metadata
from lectern.infra.persistence.memory_store import InMemoryRecordStore
from lectern.infra.persistence.record_store import SqlAlchemyRecordStore
from lectern.infra.persistence.redis_client import RedisFactory, RedisSettings, get_redis_factory
from lectern.infra.persistence.schema import metadata

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "InMemoryRecordStore",
    "RedisCascadeLock",
    "RedisFactory",
    "RedisSettings",
    "SqlAlchemyRecordStore",
    "build_dependency_graph",
    "edges_from_metadata",
    "get_database_manager",
    "get_redis_factory",
    "metadata",
]
