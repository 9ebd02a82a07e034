"""Shared fixtures for infra-storage tests."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from lectern.infra.storage.settings import StorageSettings

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def settings(tmp_path) -> StorageSettings:  # type: ignore[no-untyped-def]
    return StorageSettings(
        _env_file=None,
        storage_zone_name="zone",
        storage_api_key="storage-key",
        stream_library_id="42",
        stream_api_key="stream-key",
        local_images_root=tmp_path / "images",
    )


@pytest.fixture()
def http_client() -> Callable[[Handler], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` answered by ``handler``."""

    def build(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build
