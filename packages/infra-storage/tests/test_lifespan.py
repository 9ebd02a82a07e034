"""Tests for the storage lifespan hook."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from lectern.infra.storage import lifespan_contribution
from lectern.infra.storage.gateway import StorageGateway
from lectern.infra.storage.lifespan import _storage_lifespan


@pytest.mark.unit
class TestStorageLifespan:
    def test_priority(self) -> None:
        assert lifespan_contribution.priority == 100

    @pytest.mark.asyncio(loop_scope="function")
    async def test_exposes_and_closes_gateway(self, settings) -> None:
        app = SimpleNamespace(state=SimpleNamespace())

        with (
            patch("lectern.infra.storage.lifespan.get_storage_settings", return_value=settings),
            patch.object(StorageGateway, "aclose", new_callable=AsyncMock) as aclose,
        ):
            async with _storage_lifespan(app):
                assert isinstance(app.state.storage_gateway, StorageGateway)
                aclose.assert_not_awaited()

        aclose.assert_awaited_once()
