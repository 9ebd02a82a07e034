"""TaskIQ configuration using Pydantic settings.

Settings are loaded from environment variables with ``TASKIQ_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskIQSettings(BaseSettings):
    """Configuration for the TaskIQ broker and the orphan sweep schedule.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis URL for broker/scheduler
            (default: redis://localhost:6379/1, database 1 keeps task
            streams apart from the cascade locks on database 0)
        TASKIQ_RESULT_TTL: Result backend TTL in seconds (default: 3600)
        TASKIQ_STREAM_PREFIX: Redis stream key prefix (default: taskiq)
        TASKIQ_SWEEP_ENABLED: Register the scheduled orphan sweep (default: true)
        TASKIQ_SWEEP_CRON: Cron expression for the sweep (default: 30 3 * * *)

    Example:
        >>> TaskIQSettings().sweep_cron
        '30 3 * * *'
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for TaskIQ broker (database 1 by default)",
    )
    result_ttl: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Result backend TTL in seconds",
    )
    stream_prefix: str = Field(
        default="taskiq",
        description="Redis stream key prefix",
    )
    sweep_enabled: bool = Field(
        default=True,
        description="Whether the scheduler runs the orphan sweep",
    )
    sweep_cron: str = Field(
        default="30 3 * * *",
        description="Cron schedule of the orphan sweep",
    )

    @field_validator("sweep_cron")
    @classmethod
    def validate_sweep_cron(cls, v: str) -> str:
        fields = v.split()
        if len(fields) != 5:
            msg = f"sweep_cron must have 5 fields, got {len(fields)}"
            raise ValueError(msg)
        return " ".join(fields)

    @property
    def sweep_schedule(self) -> str | None:
        """Cron expression to register, or None when the sweep is disabled."""
        return self.sweep_cron if self.sweep_enabled else None


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Get cached TaskIQ settings singleton."""
    return TaskIQSettings()
