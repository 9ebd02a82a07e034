"""Unit tests for lectern.infra.taskiq.sweep_tasks."""

from __future__ import annotations

import pytest
from taskiq import InMemoryBroker

from lectern.domain.lifecycle.sweeper import SweepResult
from lectern.infra.taskiq.errors import SweepTaskError
from lectern.infra.taskiq.sweep_tasks import SWEEP_TASK_NAME, register_sweep_task, run_sweepers


class _StubSweeper:
    def __init__(self, namespace: str, deleted: int = 0, error: Exception | None = None) -> None:
        self.namespace = namespace
        self._deleted = deleted
        self._error = error
        self.runs = 0

    async def sweep(self) -> SweepResult:
        self.runs += 1
        if self._error is not None:
            raise self._error
        return SweepResult(namespace=self.namespace, scanned=self._deleted, deleted=self._deleted)


@pytest.mark.unit
class TestRunSweepers:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_runs_every_sweeper_in_order(self) -> None:
        sweepers = [_StubSweeper("bunny_storage", 2), _StubSweeper("bunny_stream", 1)]

        results = await run_sweepers(sweepers)

        assert [r.namespace for r in results] == ["bunny_storage", "bunny_stream"]
        assert [r.deleted for r in results] == [2, 1]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_failure_in_one_namespace_does_not_skip_the_rest(self) -> None:
        broken = _StubSweeper("bunny_storage", error=RuntimeError("listing failed"))
        healthy = _StubSweeper("local_images", 3)

        with pytest.raises(SweepTaskError) as exc_info:
            await run_sweepers([broken, healthy])

        assert healthy.runs == 1
        assert exc_info.value.failed_namespaces == {"bunny_storage": "listing failed"}
        assert [r.namespace for r in exc_info.value.results] == ["local_images"]
        assert exc_info.value.transient is True


@pytest.mark.unit
class TestRegisterSweepTask:
    def test_registers_under_stable_name_with_schedule(self) -> None:
        broker = InMemoryBroker()

        task = register_sweep_task(broker, list, cron="0 4 * * *")

        assert task.task_name == SWEEP_TASK_NAME
        assert task.labels["schedule"] == [{"cron": "0 4 * * *"}]
        assert broker.find_task(SWEEP_TASK_NAME) is not None

    def test_without_cron_has_no_schedule_label(self) -> None:
        broker = InMemoryBroker()

        task = register_sweep_task(broker, list)

        assert "schedule" not in task.labels

    @pytest.mark.asyncio(loop_scope="function")
    async def test_kiq_runs_factory_sweepers_and_returns_dicts(self) -> None:
        broker = InMemoryBroker()
        built: list[_StubSweeper] = []

        def factory() -> list[_StubSweeper]:
            sweeper = _StubSweeper("bunny_stream", 4)
            built.append(sweeper)
            return [sweeper]

        task = register_sweep_task(broker, factory, cron="30 3 * * *")
        await broker.startup()
        try:
            kicked = await task.kiq()
            result = await kicked.wait_result(timeout=5)
        finally:
            await broker.shutdown()

        assert not result.is_err
        assert result.return_value[0]["namespace"] == "bunny_stream"
        assert result.return_value[0]["deleted"] == 4
        assert len(built) == 1
