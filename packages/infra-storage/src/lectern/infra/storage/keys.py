"""Reference key classification.

Records store external references as plain strings, written over several
generations of the upload code and without any type flag. The backend a
key belongs to is therefore decided by its shape alone:

- a UUID is a Bunny Stream video id;
- ``<prefix>/<...>/<name>`` with an allowed first segment and at least
  three segments is a Bunny storage object key;
- anything else (``/images/<name>``, a bare file name) is a legacy upload
  on local disk.

Keys containing ``..`` or a backslash are never routed anywhere.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import StrEnum
from urllib.parse import urlparse

VIDEO_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

LEGACY_IMAGE_PREFIXES = ("/images/", "images/")


class KeyKind(StrEnum):
    VIDEO = "video"
    OBJECT = "object"
    LEGACY_LOCAL = "legacy_local"
    INVALID = "invalid"


def is_video_id(key: str) -> bool:
    return bool(VIDEO_ID_PATTERN.match(key.strip()))


def is_unsafe(key: str) -> bool:
    return ".." in key or "\\" in key


def normalize_key(key: str) -> str:
    """Strip whitespace and reduce absolute URLs to their path."""
    key = key.strip()
    if key.startswith(("http://", "https://")):
        key = urlparse(key).path
    return key


def is_object_key(key: str, allowed_prefixes: Iterable[str]) -> bool:
    """True for a safe, namespaced Bunny storage key.

    Example:
        >>> is_object_key("courses/c1/thumb.png", ["courses"])
        True
        >>> is_object_key("courses/thumb.png", ["courses"])
        False
    """
    if is_unsafe(key):
        return False
    parts = key.split("/")
    if len(parts) < 3 or not all(parts):
        return False
    return parts[0] in set(allowed_prefixes)


def legacy_local_name(key: str) -> str:
    """Path of a legacy upload relative to the local images directory."""
    for prefix in LEGACY_IMAGE_PREFIXES:
        if key.startswith(prefix):
            return key[len(prefix) :]
    return key.lstrip("/")


def classify_key(key: str, allowed_prefixes: Iterable[str]) -> KeyKind:
    """Decide which backend ``key`` belongs to."""
    key = normalize_key(key)
    if not key or is_unsafe(key):
        return KeyKind.INVALID
    if is_video_id(key):
        return KeyKind.VIDEO
    if is_object_key(key.lstrip("/"), allowed_prefixes):
        return KeyKind.OBJECT
    if legacy_local_name(key):
        return KeyKind.LEGACY_LOCAL
    return KeyKind.INVALID
