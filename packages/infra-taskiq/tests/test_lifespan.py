"""Unit tests for lectern.infra.taskiq.lifespan."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lectern.foundation.application import LifespanContribution
from lectern.infra.taskiq.errors import TaskIQBrokerError
from lectern.infra.taskiq.lifespan import _taskiq_lifespan, lifespan_contribution


@pytest.mark.unit
class TestLifespanContribution:
    def test_is_lifespan_contribution(self) -> None:
        assert isinstance(lifespan_contribution, LifespanContribution)

    def test_priority_runs_after_persistence(self) -> None:
        assert lifespan_contribution.priority == 150


@pytest.mark.unit
class TestTaskIQLifespan:
    @pytest.mark.asyncio(loop_scope="function")
    @patch("lectern.infra.taskiq.lifespan.get_broker")
    async def test_starts_and_stops_broker(self, mock_get_broker: MagicMock) -> None:
        mock_broker = AsyncMock()
        mock_get_broker.return_value = mock_broker

        async with _taskiq_lifespan(MagicMock()):
            mock_broker.startup.assert_awaited_once()
            mock_broker.shutdown.assert_not_called()

        mock_broker.shutdown.assert_awaited_once()

    @pytest.mark.asyncio(loop_scope="function")
    @patch("lectern.infra.taskiq.lifespan.get_broker")
    async def test_connection_failure_raises_broker_error(
        self, mock_get_broker: MagicMock
    ) -> None:
        mock_broker = AsyncMock()
        mock_broker.startup.side_effect = ConnectionError("refused")
        mock_get_broker.return_value = mock_broker

        with pytest.raises(TaskIQBrokerError) as exc_info:
            async with _taskiq_lifespan(MagicMock()):
                pass

        assert exc_info.value.transient is True
        mock_broker.shutdown.assert_not_called()
