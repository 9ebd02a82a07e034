"""Bunny Stream video backend.

Deletes and lists videos in one Bunny Stream library
(``https://video.bunnycdn.com/library/{library_id}/videos/{video_id}``).
A 404 means the video is already gone.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from lectern.foundation.domain.deletion_value_objects import DeleteResult, StoredObject
from lectern.infra.storage._http import (
    HttpBackend,
    parse_timestamp,
    result_for_error,
    result_for_response,
)
from lectern.infra.storage.keys import is_video_id, normalize_key

if TYPE_CHECKING:
    from lectern.infra.storage.settings import StorageSettings

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class BunnyStreamLibrary(HttpBackend):
    """One Bunny Stream video library."""

    name = "bunny_stream"

    def __init__(self, settings: StorageSettings, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(settings.request_timeout, client)
        self._settings = settings

    @property
    def configured(self) -> bool:
        return self._settings.stream_configured

    def _base_url(self) -> str:
        s = self._settings
        return f"https://{s.stream_hostname}/library/{s.stream_library_id}/videos"

    def _headers(self) -> dict[str, str]:
        return {"AccessKey": self._settings.stream_api_key or "", "Accept": "application/json"}

    async def delete(self, key: str) -> DeleteResult:
        """Delete one video by id. Exactly one HTTP call, no retries."""
        if not self.configured:
            return DeleteResult.permanent("Bunny Stream credentials are not configured")
        video_id = normalize_key(key)
        try:
            response = await self._get_client().delete(
                f"{self._base_url()}/{video_id}",
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "bunny_stream_delete_error",
                extra={"video_id": video_id, "error": str(exc)},
            )
            return result_for_error(exc)
        return result_for_response(response)

    async def list_objects(self) -> list[StoredObject]:
        """List every video in the library, page by page.

        Raises:
            httpx.HTTPError: Listing failed.
        """
        if not self.configured:
            return []
        found: list[StoredObject] = []
        page = 1
        while True:
            response = await self._get_client().get(
                self._base_url(),
                params={"page": page, "itemsPerPage": PAGE_SIZE},
                headers=self._headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            body: dict[str, Any] = response.json()
            items = body.get("items") or []
            found.extend(
                StoredObject(
                    key=item["guid"].lower(),
                    last_modified=parse_timestamp(item.get("dateUploaded")),
                )
                for item in items
            )
            total = int(body.get("totalItems") or 0)
            if not items or page * PAGE_SIZE >= total:
                return found
            page += 1

    def resolve_key(self, reference_key: str) -> str | None:
        key = normalize_key(reference_key)
        return key.lower() if is_video_id(key) else None

    def reference_forms(self, key: str) -> tuple[str, ...]:
        return tuple(dict.fromkeys((key, key.lower(), key.upper())))
