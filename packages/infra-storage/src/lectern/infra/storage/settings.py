"""Storage backend configuration using Pydantic settings.

Settings are loaded from environment variables with ``BUNNY_`` prefix,
matching the variable names the platform has always used for Bunny
object storage and Bunny Stream.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_PREFIXES = (
    "assignments",
    "resources",
    "lesson",
    "lessons",
    "course",
    "courses",
    "logo",
    "favicon",
    "submissions",
)


class StorageSettings(BaseSettings):
    """Configuration for object storage, video hosting and legacy local files.

    Environment Variables:
        BUNNY_STORAGE_ZONE_NAME: Storage zone holding images and files
        BUNNY_STORAGE_API_KEY: Storage zone password (hidden in logs)
        BUNNY_STORAGE_HOSTNAME: Regional storage endpoint (default: storage.bunnycdn.com)
        BUNNY_STREAM_LIBRARY_ID: Video library id
        BUNNY_STREAM_API_KEY: Video library API key (hidden in logs)
        BUNNY_STREAM_HOSTNAME: Video API endpoint (default: video.bunnycdn.com)
        BUNNY_REQUEST_TIMEOUT: Per-request HTTP timeout in seconds (default: 5)
        BUNNY_ALLOWED_PREFIXES: JSON list of first path segments accepted as object keys
        BUNNY_LOCAL_IMAGES_ROOT: Directory of pre-Bunny uploads (default: public/images)

    Example:
        >>> settings = StorageSettings(storage_zone_name="zone", storage_api_key="k")
        >>> settings.storage_configured
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="BUNNY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage_zone_name: str | None = Field(default=None, description="Bunny storage zone")
    storage_api_key: str | None = Field(
        default=None, repr=False, description="Bunny storage zone password"
    )
    storage_hostname: str = Field(
        default="storage.bunnycdn.com", description="Bunny storage endpoint hostname"
    )
    stream_library_id: str | None = Field(default=None, description="Bunny Stream library id")
    stream_api_key: str | None = Field(
        default=None, repr=False, description="Bunny Stream API key"
    )
    stream_hostname: str = Field(
        default="video.bunnycdn.com", description="Bunny Stream API hostname"
    )
    request_timeout: float = Field(
        default=5.0, gt=0, le=60, description="HTTP timeout per storage call in seconds"
    )
    allowed_prefixes: tuple[str, ...] = Field(
        default=DEFAULT_ALLOWED_PREFIXES,
        description="First path segments accepted as object storage keys",
    )
    local_images_root: Path = Field(
        default=Path("public/images"), description="Directory of legacy local uploads"
    )

    @property
    def storage_configured(self) -> bool:
        return bool(self.storage_zone_name and self.storage_api_key)

    @property
    def stream_configured(self) -> bool:
        return bool(self.stream_library_id and self.stream_api_key)


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached storage settings singleton."""
    return StorageSettings()
