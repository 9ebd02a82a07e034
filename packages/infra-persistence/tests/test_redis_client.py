"""Tests for Redis settings and client factory."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lectern.infra.persistence.redis_client import RedisFactory, RedisSettings, get_redis_factory


@pytest.mark.unit
class TestRedisSettings:
    def test_from_url(self) -> None:
        settings = RedisSettings.from_url("redis://:secret@cache:6380/2")
        assert (settings.host, settings.port, settings.db) == ("cache", 6380, 2)
        assert settings.password == "secret"
        assert settings.get_url() == "redis://:secret@cache:6380/2"

    def test_rejects_other_schemes(self) -> None:
        with pytest.raises(ValueError, match="Invalid Redis URL scheme"):
            RedisSettings.from_url("http://cache:6379/0")

    def test_rejects_bad_db_path(self) -> None:
        with pytest.raises(ValueError, match="Invalid database number"):
            RedisSettings.from_url("redis://cache:6379/abc")

    def test_builds_url_from_parts(self) -> None:
        settings = RedisSettings(_env_file=None, url=None, host="cache", port=6381, db=3)
        assert settings.get_url() == "redis://cache:6381/3"


@pytest.mark.unit
class TestRedisFactory:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_get_client_creates_lazily(self) -> None:
        factory = RedisFactory.from_url("redis://cache:6379/0")
        mock_client = MagicMock()

        with patch("redis.asyncio.from_url", return_value=mock_client) as from_url:
            assert await factory.get_client() is mock_client
            assert await factory.get_client() is mock_client

        from_url.assert_called_once()
        assert from_url.call_args.kwargs["max_connections"] == factory.settings.pool_size

    @pytest.mark.asyncio(loop_scope="function")
    async def test_close_is_idempotent(self) -> None:
        factory = RedisFactory.from_url("redis://cache:6379/0")
        mock_client = MagicMock()
        mock_client.aclose = AsyncMock()

        with patch("redis.asyncio.from_url", return_value=mock_client):
            await factory.get_client()
        await factory.close()
        await factory.close()

        mock_client.aclose.assert_awaited_once()

    def test_singleton(self) -> None:
        get_redis_factory.cache_clear()
        try:
            assert get_redis_factory() is get_redis_factory()
        finally:
            get_redis_factory.cache_clear()
