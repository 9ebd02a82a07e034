"""Storage gateway: one entry point for deleting any external reference.

Callers hand over whatever string a record stores. The gateway alone
decides the backend from the key's shape (see ``keys``), performs exactly
one delete, and returns a normalized ``DeleteResult``. It never raises for
a missing object and never retries.

Usage:
    gateway = StorageGateway.from_settings(get_storage_settings())
    result = await gateway.delete_object("courses/c1/thumb.png")
    await gateway.aclose()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lectern.foundation.domain.deletion_value_objects import DeleteResult
from lectern.infra.storage.bunny_storage import BunnyObjectStorage
from lectern.infra.storage.bunny_stream import BunnyStreamLibrary
from lectern.infra.storage.keys import KeyKind, classify_key
from lectern.infra.storage.local_storage import LocalImageStorage

if TYPE_CHECKING:
    import httpx

    from lectern.foundation.domain.deletion_value_objects import ExternalReference
    from lectern.foundation.domain.ports.storage_namespace import StorageNamespacePort
    from lectern.infra.storage.settings import StorageSettings

logger = logging.getLogger(__name__)


class StorageGateway:
    """Routes deletes to Bunny storage, Bunny Stream or local disk.

    Args:
        objects: Object storage backend.
        videos: Video library backend.
        local: Legacy local image directory.
        allowed_prefixes: First segments accepted as object keys.
    """

    def __init__(
        self,
        objects: BunnyObjectStorage,
        videos: BunnyStreamLibrary,
        local: LocalImageStorage,
        allowed_prefixes: tuple[str, ...],
    ) -> None:
        self._objects = objects
        self._videos = videos
        self._local = local
        self._allowed_prefixes = allowed_prefixes

    @classmethod
    def from_settings(
        cls,
        settings: StorageSettings,
        client: httpx.AsyncClient | None = None,
    ) -> StorageGateway:
        """Build all three backends from one settings object."""
        return cls(
            objects=BunnyObjectStorage(settings, client),
            videos=BunnyStreamLibrary(settings, client),
            local=LocalImageStorage(settings.local_images_root, settings.allowed_prefixes),
            allowed_prefixes=settings.allowed_prefixes,
        )

    def namespaces(self) -> list[StorageNamespacePort]:
        """Every namespace the orphan sweeper should reconcile."""
        return [self._objects, self._videos, self._local]

    async def delete_object(self, key: str | None) -> DeleteResult:
        """Delete an image or file by its stored key."""
        return await self._route(key)

    async def delete_video(self, video_id: str | None) -> DeleteResult:
        """Delete a video by its stored id."""
        return await self._route(video_id)

    async def delete_reference(self, reference: ExternalReference) -> DeleteResult:
        return await self._route(reference.key)

    async def _route(self, key: str | None) -> DeleteResult:
        if not key or not key.strip():
            return DeleteResult.ok()
        kind = classify_key(key, self._allowed_prefixes)
        if kind == KeyKind.VIDEO:
            result = await self._videos.delete(key)
        elif kind == KeyKind.OBJECT:
            result = await self._objects.delete(key)
        elif kind == KeyKind.LEGACY_LOCAL:
            result = await self._local.delete(key)
        else:
            result = DeleteResult.permanent(f"Refusing to delete unsafe key {key!r}")
        logger.info(
            "storage_delete",
            extra={"key": key, "backend": str(kind), "result": str(result.status)},
        )
        return result

    async def aclose(self) -> None:
        await self._objects.aclose()
        await self._videos.aclose()
