"""Cascade and sweep tuning using Pydantic settings.

Settings are loaded from environment variables with ``LIFECYCLE_`` prefix
and passed into the executor, sweeper and locks at construction time.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LifecycleSettings(BaseSettings):
    """Configuration for cascade execution and orphan sweeping.

    Environment Variables:
        LIFECYCLE_EXTERNAL_DELETE_TIMEOUT: Seconds per storage/video delete (default: 10)
        LIFECYCLE_MAX_CONCURRENT_EXTERNAL_DELETES: In-flight deletes per step (default: 8)
        LIFECYCLE_SWEEP_GRACE_HOURS: Minimum orphan age before deletion (default: 24)
        LIFECYCLE_LOCK_TTL_SECONDS: Expiry of a distributed cascade lock, renewed every
            third of the TTL while a cascade runs (default: 300)
        LIFECYCLE_LOCK_WAIT_SECONDS: How long to wait for a held lock (default: 0)

    Example:
        >>> settings = LifecycleSettings()
        >>> settings.sweep_grace_period
        datetime.timedelta(days=1)
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFECYCLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    external_delete_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout in seconds for each external delete call",
    )
    max_concurrent_external_deletes: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Maximum concurrent external deletes within one step",
    )
    sweep_grace_hours: float = Field(
        default=24.0,
        ge=0,
        description="Orphans younger than this are never swept",
    )
    lock_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description=(
            "Expiry of a distributed cascade lock. Renewed every ttl/3 seconds while the "
            "cascade runs, so it only bounds how long a crashed worker keeps the keys"
        ),
    )
    lock_wait_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Time to wait for a held cascade lock before giving up",
    )

    @property
    def sweep_grace_period(self) -> timedelta:
        return timedelta(hours=self.sweep_grace_hours)


@lru_cache(maxsize=1)
def get_lifecycle_settings() -> LifecycleSettings:
    """Get cached lifecycle settings singleton."""
    return LifecycleSettings()
