"""Redis settings and async client factory.

The Redis client backs the distributed cascade lock. Configuration is
read from ``REDIS_*`` environment variables, or from a single URL.

Example:
    >>> from lectern.infra.persistence.redis_client import get_redis_factory
    >>> factory = get_redis_factory()
    >>> client = await factory.get_client()
    >>> await client.ping()
    True
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Configuration for the Redis connection.

    Environment Variables:
        REDIS_URL: Full connection URL. Takes precedence when set.
        REDIS_HOST: Redis host (default: localhost)
        REDIS_PORT: Redis port (default: 6379)
        REDIS_DB: Database number (default: 0)
        REDIS_PASSWORD: Optional password (hidden in logs)
        REDIS_POOL_SIZE: Maximum connections in pool (default: 10)
        REDIS_SOCKET_TIMEOUT: Socket timeout in seconds (default: 5.0)

    Example:
        >>> RedisSettings(host="cache", port=6380).get_url()
        'redis://cache:6380/0'
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = Field(default=None, repr=False, description="Full Redis URL")
    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    db: int = Field(default=0, ge=0, le=15, description="Redis database number (0-15)")
    password: str | None = Field(default=None, repr=False, description="Redis password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Maximum connections in pool")
    socket_timeout: float = Field(default=5.0, ge=0.1, description="Socket timeout in seconds")

    @classmethod
    def from_url(cls, url: str) -> RedisSettings:
        """Create settings from a ``redis://`` or ``rediss://`` URL.

        Raises:
            ValueError: If the scheme or database path is invalid.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("redis", "rediss"):
            msg = f"Invalid Redis URL scheme: {parsed.scheme}"
            raise ValueError(msg)
        db = 0
        if parsed.path and parsed.path != "/":
            try:
                db = int(parsed.path.lstrip("/"))
            except ValueError:
                msg = f"Invalid database number in URL path: {parsed.path}"
                raise ValueError(msg) from None
        return cls(
            url=url,
            host=parsed.hostname or "localhost",
            port=parsed.port or 6379,
            db=db,
            password=parsed.password,
        )

    def get_url(self) -> str:
        """Return ``url`` if set, else build one from the individual fields."""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class RedisFactory:
    """Lazily creates and closes one pooled ``redis.asyncio`` client.

    Usage:
        factory = RedisFactory(RedisSettings())
        client = await factory.get_client()
        await factory.close()
    """

    def __init__(self, settings: RedisSettings) -> None:
        self._settings = settings
        self._client: Any = None

    @classmethod
    def from_url(cls, url: str) -> RedisFactory:
        return cls(RedisSettings.from_url(url))

    @property
    def settings(self) -> RedisSettings:
        return self._settings

    async def get_client(self) -> Any:
        """Get the client, creating it on first access."""
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(  # type: ignore[no-untyped-call]
                self._settings.get_url(),
                max_connections=self._settings.pool_size,
                socket_timeout=self._settings.socket_timeout,
                decode_responses=False,
            )
        return self._client

    async def close(self) -> None:
        """Close the client and release its pool. Safe to call twice."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@lru_cache(maxsize=1)
def get_redis_factory() -> RedisFactory:
    """Get cached Redis factory singleton configured from the environment."""
    return RedisFactory(RedisSettings())
