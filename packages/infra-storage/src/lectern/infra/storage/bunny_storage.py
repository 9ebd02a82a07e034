"""Bunny object storage backend.

Deletes and lists objects in one storage zone over the Bunny Storage HTTP
API (``https://{hostname}/{zone}/{key}`` with an ``AccessKey`` header).
Doubles as the sweeper namespace for that zone.
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
from lectern.infra.storage.keys import KeyKind, classify_key, is_object_key, normalize_key

if TYPE_CHECKING:
    from lectern.infra.storage.settings import StorageSettings

logger = logging.getLogger(__name__)


class BunnyObjectStorage(HttpBackend):
    """One Bunny storage zone.

    Args:
        settings: Zone name, key, hostname, timeout and allowed prefixes.
        client: Optional shared ``httpx.AsyncClient``.
    """

    name = "bunny_storage"

    def __init__(self, settings: StorageSettings, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(settings.request_timeout, client)
        self._settings = settings

    @property
    def configured(self) -> bool:
        return self._settings.storage_configured

    def _url(self, path: str) -> str:
        s = self._settings
        return f"https://{s.storage_hostname}/{s.storage_zone_name}/{path}"

    def _headers(self) -> dict[str, str]:
        return {"AccessKey": self._settings.storage_api_key or ""}

    async def delete(self, key: str) -> DeleteResult:
        """Delete one object. Exactly one HTTP call, no retries."""
        if not self.configured:
            return DeleteResult.permanent("Bunny storage credentials are not configured")
        object_key = normalize_key(key).lstrip("/")
        try:
            response = await self._get_client().delete(
                self._url(object_key),
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "bunny_storage_delete_error",
                extra={"key": object_key, "error": str(exc)},
            )
            return result_for_error(exc)
        result = result_for_response(response)
        logger.debug(
            "bunny_storage_delete",
            extra={
                "key": object_key,
                "status_code": response.status_code,
                "result": str(result.status),
            },
        )
        return result

    async def list_objects(self) -> list[StoredObject]:
        """List every file under the allowed top-level prefixes, recursively.

        Raises:
            httpx.HTTPError: Listing failed. A sweep cannot proceed on a
                partial listing.
        """
        if not self.configured:
            return []
        found: list[StoredObject] = []
        for prefix in self._settings.allowed_prefixes:
            await self._walk(f"{prefix}/", found)
        return found

    async def _walk(self, directory: str, found: list[StoredObject]) -> None:
        response = await self._get_client().get(
            self._url(directory),
            headers={**self._headers(), "Accept": "application/json"},
            timeout=self._timeout,
        )
        if response.status_code == 404:
            return
        response.raise_for_status()
        entries: list[dict[str, Any]] = response.json()
        for entry in entries:
            name = entry.get("ObjectName", "")
            if entry.get("IsDirectory"):
                await self._walk(f"{directory}{name}/", found)
                continue
            key = f"{directory}{name}"
            if not is_object_key(key, self._settings.allowed_prefixes):
                # Never routed here by a reference, so never ours to sweep.
                continue
            changed = entry.get("LastChanged") or entry.get("DateCreated")
            found.append(StoredObject(key=key, last_modified=parse_timestamp(changed)))

    def resolve_key(self, reference_key: str) -> str | None:
        if classify_key(reference_key, self._settings.allowed_prefixes) != KeyKind.OBJECT:
            return None
        return normalize_key(reference_key).lstrip("/")

    def reference_forms(self, key: str) -> tuple[str, ...]:
        return (key, f"/{key}")
