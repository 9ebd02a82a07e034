"""Legacy local-disk uploads.

Before object storage existed, images were written under
``public/images`` and referenced as ``/images/<name>``. Those files are
still deleted with their records and swept like any other namespace.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from lectern.foundation.domain.deletion_value_objects import DeleteResult, StoredObject
from lectern.infra.storage.keys import (
    LEGACY_IMAGE_PREFIXES,
    KeyKind,
    classify_key,
    is_unsafe,
    legacy_local_name,
    normalize_key,
)
from lectern.infra.storage.settings import DEFAULT_ALLOWED_PREFIXES

logger = logging.getLogger(__name__)


class LocalImageStorage:
    """Files under one local directory.

    Args:
        root: Directory holding legacy uploads.
        allowed_prefixes: Object-storage prefixes, used to tell legacy keys
            apart from Bunny keys.
    """

    name = "local_images"

    def __init__(
        self,
        root: Path,
        allowed_prefixes: tuple[str, ...] = DEFAULT_ALLOWED_PREFIXES,
    ) -> None:
        self._root = root
        self._allowed_prefixes = allowed_prefixes

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path | None:
        name = legacy_local_name(normalize_key(key))
        if not name or is_unsafe(name):
            return None
        root = self._root.resolve()
        path = (root / name).resolve()
        if not path.is_relative_to(root):
            return None
        return path

    async def delete(self, key: str) -> DeleteResult:
        """Remove one file. A missing file is NOT_FOUND."""
        path = self._path_for(key)
        if path is None:
            return DeleteResult.permanent(f"Refusing to delete outside {self._root}: {key!r}")
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return DeleteResult.not_found()
        except OSError as exc:
            logger.warning(
                "local_image_delete_error", extra={"path": str(path), "error": str(exc)}
            )
            return DeleteResult.permanent(f"{type(exc).__name__}: {exc}")
        return DeleteResult.ok()

    async def list_objects(self) -> list[StoredObject]:
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> list[StoredObject]:
        if not self._root.is_dir():
            return []
        found: list[StoredObject] = []
        for path in sorted(self._root.rglob("*")):
            if not path.is_file():
                continue
            modified = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
            found.append(
                StoredObject(key=path.relative_to(self._root).as_posix(), last_modified=modified)
            )
        return found

    def resolve_key(self, reference_key: str) -> str | None:
        if classify_key(reference_key, self._allowed_prefixes) != KeyKind.LEGACY_LOCAL:
            return None
        return legacy_local_name(normalize_key(reference_key))

    def reference_forms(self, key: str) -> tuple[str, ...]:
        return (key, f"/{key}", *(prefix + key for prefix in LEGACY_IMAGE_PREFIXES))
