"""Tests for StorageGateway routing."""

from __future__ import annotations

import httpx
import pytest

from lectern.foundation.domain.deletion_value_objects import (
    DeleteStatus,
    ExternalReference,
    ExternalReferenceKind,
)
from lectern.foundation.domain.ports.storage_gateway import StorageGatewayPort
from lectern.infra.storage.gateway import StorageGateway

VIDEO_ID = "0b6a7d1e-3c2f-4f1a-9d8e-5a4b3c2d1e0f"


@pytest.fixture()
def hosts() -> list[str]:
    return []


@pytest.fixture()
def gateway(settings, http_client, hosts) -> StorageGateway:  # type: ignore[no-untyped-def]
    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200)

    return StorageGateway.from_settings(settings, http_client(handler))


@pytest.mark.unit
class TestStorageGateway:
    def test_satisfies_port(self, gateway: StorageGateway) -> None:
        assert isinstance(gateway, StorageGatewayPort)

    @pytest.mark.asyncio(loop_scope="function")
    async def test_routes_by_key_shape(self, gateway: StorageGateway, hosts, settings) -> None:
        settings.local_images_root.mkdir()
        (settings.local_images_root / "old.png").write_bytes(b"x")

        assert (await gateway.delete_video(VIDEO_ID)).succeeded
        assert (await gateway.delete_object("course/c1/a.png")).succeeded
        assert (await gateway.delete_object("/images/old.png")).status == DeleteStatus.OK

        assert hosts == ["video.bunnycdn.com", "storage.bunnycdn.com"]
        assert not (settings.local_images_root / "old.png").exists()

    @pytest.mark.asyncio(loop_scope="function")
    async def test_empty_key_is_a_no_op(self, gateway: StorageGateway, hosts) -> None:
        assert (await gateway.delete_object(None)).status == DeleteStatus.OK
        assert (await gateway.delete_video("  ")).status == DeleteStatus.OK
        assert hosts == []

    @pytest.mark.asyncio(loop_scope="function")
    async def test_unsafe_key_is_refused(self, gateway: StorageGateway, hosts) -> None:
        result = await gateway.delete_object("course/../../etc/passwd")

        assert result.status == DeleteStatus.PERMANENT_ERROR
        assert hosts == []

    @pytest.mark.asyncio(loop_scope="function")
    async def test_delete_reference_ignores_declared_kind(
        self, gateway: StorageGateway, hosts
    ) -> None:
        reference = ExternalReference(ExternalReferenceKind.IMAGE, VIDEO_ID)

        await gateway.delete_reference(reference)

        assert hosts == ["video.bunnycdn.com"]

    def test_namespaces(self, gateway: StorageGateway) -> None:
        names = [namespace.name for namespace in gateway.namespaces()]
        assert names == ["bunny_storage", "bunny_stream", "local_images"]
