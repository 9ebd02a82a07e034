"""Unit tests for lectern.infra.taskiq.settings."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from lectern.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings


@pytest.mark.unit
class TestTaskIQSettings:
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = TaskIQSettings()
        assert settings.redis_url == "redis://localhost:6379/1"
        assert settings.result_ttl == 3600
        assert settings.sweep_enabled is True
        assert settings.sweep_schedule == "30 3 * * *"

    def test_disabled_sweep_has_no_schedule(self) -> None:
        settings = TaskIQSettings(sweep_enabled=False)
        assert settings.sweep_schedule is None

    def test_cron_whitespace_is_normalized(self) -> None:
        settings = TaskIQSettings(sweep_cron="0  */6 * *  *")
        assert settings.sweep_cron == "0 */6 * * *"

    def test_cron_with_wrong_field_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TaskIQSettings(sweep_cron="0 3 * *")

    def test_result_ttl_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TaskIQSettings(result_ttl=10)

    def test_from_env(self) -> None:
        env = {"TASKIQ_SWEEP_CRON": "15 2 * * 0", "TASKIQ_SWEEP_ENABLED": "false"}
        get_taskiq_settings.cache_clear()
        try:
            with patch.dict("os.environ", env, clear=True):
                settings = get_taskiq_settings()
            assert settings.sweep_cron == "15 2 * * 0"
            assert settings.sweep_enabled is False
        finally:
            get_taskiq_settings.cache_clear()
