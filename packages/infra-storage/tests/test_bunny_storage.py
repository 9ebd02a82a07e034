"""Tests for the Bunny object storage backend."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from lectern.foundation.domain.deletion_value_objects import DeleteStatus
from lectern.infra.storage.bunny_storage import BunnyObjectStorage
from lectern.infra.storage.settings import StorageSettings


@pytest.mark.unit
class TestDelete:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_sends_one_authenticated_delete(self, settings, http_client) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        storage = BunnyObjectStorage(settings, http_client(handler))
        result = await storage.delete("/course/c1/thumbnail.png")

        assert result.status == DeleteStatus.OK
        [request] = requests
        assert request.method == "DELETE"
        assert str(request.url) == "https://storage.bunnycdn.com/zone/course/c1/thumbnail.png"
        assert request.headers["AccessKey"] == "storage-key"

    @pytest.mark.asyncio(loop_scope="function")
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (404, DeleteStatus.NOT_FOUND),
            (429, DeleteStatus.TRANSIENT_ERROR),
            (502, DeleteStatus.TRANSIENT_ERROR),
            (401, DeleteStatus.PERMANENT_ERROR),
        ],
    )
    async def test_status_mapping(
        self, settings, http_client, status_code: int, expected: DeleteStatus
    ) -> None:
        storage = BunnyObjectStorage(
            settings, http_client(lambda request: httpx.Response(status_code, text="nope"))
        )

        result = await storage.delete("course/c1/a.png")

        assert result.status == expected

    @pytest.mark.asyncio(loop_scope="function")
    async def test_transport_error_is_transient(self, settings, http_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await BunnyObjectStorage(settings, http_client(handler)).delete("course/c/a.png")

        assert result.status == DeleteStatus.TRANSIENT_ERROR
        assert result.detail is not None
        assert result.detail.startswith("ConnectError")

    @pytest.mark.asyncio(loop_scope="function")
    async def test_missing_credentials_is_permanent_without_a_call(self, http_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            pytest.fail("no request expected")

        storage = BunnyObjectStorage(StorageSettings(_env_file=None), http_client(handler))

        result = await storage.delete("course/c1/a.png")

        assert result.status == DeleteStatus.PERMANENT_ERROR


@pytest.mark.unit
class TestListing:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_walks_directories_under_allowed_prefixes(self, http_client) -> None:
        listings = {
            "/zone/course/": [
                {"ObjectName": "c1", "IsDirectory": True},
                {"ObjectName": "stray.png", "IsDirectory": False},
            ],
            "/zone/course/c1/": [
                {
                    "ObjectName": "thumbnail.png",
                    "IsDirectory": False,
                    "LastChanged": "2024-05-01T10:00:00",
                },
            ],
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Accept"] == "application/json"
            entries = listings.get(request.url.path)
            if entries is None:
                return httpx.Response(404)
            return httpx.Response(200, json=entries)

        settings = StorageSettings(
            _env_file=None,
            storage_zone_name="zone",
            storage_api_key="k",
            allowed_prefixes=("course", "lessons"),
        )
        objects = await BunnyObjectStorage(settings, http_client(handler)).list_objects()

        assert [obj.key for obj in objects] == ["course/c1/thumbnail.png"]
        assert objects[0].last_modified == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    @pytest.mark.asyncio(loop_scope="function")
    async def test_listing_failure_raises(self, settings, http_client) -> None:
        storage = BunnyObjectStorage(settings, http_client(lambda r: httpx.Response(500)))

        with pytest.raises(httpx.HTTPStatusError):
            await storage.list_objects()


@pytest.mark.unit
class TestReferenceMapping:
    def test_resolve_and_forms(self, settings) -> None:
        storage = BunnyObjectStorage(settings)
        assert storage.resolve_key("/course/c1/a.png") == "course/c1/a.png"
        assert storage.resolve_key("/images/a.png") is None
        assert storage.reference_forms("course/c1/a.png") == (
            "course/c1/a.png",
            "/course/c1/a.png",
        )
