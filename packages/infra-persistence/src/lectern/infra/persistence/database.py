"""Async engine and session factory for the relational store.

One DatabaseManager per process owns the engine; the record store, the
health check and the startup schema hook all borrow from it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class DatabaseSettings(BaseSettings):
    """Connection settings read from ``DATABASE_*`` environment variables.

    ``DATABASE_URL`` wins when set (tests and local runs point it at
    ``sqlite+aiosqlite``). Otherwise a PostgreSQL URL for psycopg is built
    from host, port, user, password and name.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = Field(default=None, repr=False, description="Full async database URL")
    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL user")
    password: str = Field(default="postgres", repr=False, description="PostgreSQL password")
    name: str = Field(default="lectern", description="PostgreSQL database name")

    pool_size: int = Field(default=10, ge=1, le=100, description="Engine base pool size")
    max_overflow: int = Field(default=5, ge=0, le=100, description="Engine max overflow")
    pool_timeout: int = Field(
        default=30, ge=1, le=300, description="Seconds to wait for a connection from pool"
    )
    pool_recycle: int = Field(
        default=3600, ge=60, le=86400, description="Seconds before a connection is recycled"
    )
    echo: bool = Field(default=False, description="Echo SQL statements to log")
    create_schema: bool = Field(
        default=False, description="Create platform tables on startup (development only)"
    )

    @model_validator(mode="after")
    def _validate_connection_url(self) -> DatabaseSettings:
        """Validate the built connection URL is parseable by SQLAlchemy."""
        from sqlalchemy.engine.url import make_url

        try:
            make_url(self.database_url)
        except Exception as exc:
            msg = f"Invalid database connection URL: {exc}"
            raise ValueError(msg) from exc
        return self

    @property
    def database_url(self) -> str:
        """Async connection URL: ``url`` if set, else PostgreSQL via psycopg."""
        if self.url:
            return self.url
        return (
            f"postgresql+psycopg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Lazily builds and disposes the async engine.

    SQLite engines get ``PRAGMA foreign_keys=ON`` on every connection so
    referential integrity is enforced the same way PostgreSQL enforces it.
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def settings(self) -> DatabaseSettings:
        """The settings used by this manager."""
        return self._settings

    def get_engine(self) -> AsyncEngine:
        """Get or create the async database engine."""
        if self._engine is None:
            s = self._settings
            if s.is_sqlite:
                engine = create_async_engine(s.database_url, echo=s.echo)
                event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            else:
                engine = create_async_engine(
                    s.database_url,
                    pool_size=s.pool_size,
                    max_overflow=s.max_overflow,
                    pool_pre_ping=True,
                    pool_timeout=s.pool_timeout,
                    pool_recycle=s.pool_recycle,
                    echo=s.echo,
                )
            self._engine = engine
        return self._engine

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.get_engine(),
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
                autocommit=False,
            )
        return self._session_factory

    async def dispose(self) -> None:
        """Dispose of the engine and its connection pool.

        Safe to call multiple times.
        """
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


@lru_cache(maxsize=1)
def get_database_manager() -> DatabaseManager:
    """Get the default DatabaseManager singleton, configured from the environment."""
    return DatabaseManager(DatabaseSettings())
