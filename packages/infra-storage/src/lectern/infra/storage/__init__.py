"""Lectern Infrastructure Storage -- Bunny storage, Bunny Stream and legacy local files."""

from lectern.infra.storage.bunny_storage import BunnyObjectStorage
from lectern.infra.storage.bunny_stream import BunnyStreamLibrary
from lectern.infra.storage.gateway import StorageGateway
from lectern.infra.storage.keys import KeyKind, classify_key, is_video_id
from lectern.infra.storage.lifespan import lifespan_contribution
from lectern.infra.storage.local_storage import LocalImageStorage
from lectern.infra.storage.settings import StorageSettings, get_storage_settings

__all__ = [
    "BunnyObjectStorage",
    "BunnyStreamLibrary",
    "KeyKind",
    "LocalImageStorage",
    "StorageGateway",
    "StorageSettings",
    "classify_key",
    "get_storage_settings",
    "is_video_id",
    "lifespan_contribution",
]
