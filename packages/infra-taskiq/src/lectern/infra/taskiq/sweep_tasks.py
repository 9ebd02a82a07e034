"""Scheduled orphan sweep task.

The task is registered on a broker passed in by the application so the
same function runs under the Redis Stream broker in production and the
in-memory broker in tests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lectern.infra.taskiq.errors import SweepTaskError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from taskiq import AsyncBroker
    from taskiq.decor import AsyncTaskiqDecoratedTask

    from lectern.domain.lifecycle.sweeper import OrphanSweeper, SweepResult

logger = logging.getLogger(__name__)

SWEEP_TASK_NAME = "lectern.sweep_orphans"


async def run_sweepers(sweepers: Sequence[OrphanSweeper]) -> list[SweepResult]:
    """Run each sweeper in turn.

    A namespace whose listing or lookup raises does not stop the others.

    Raises:
        SweepTaskError: After all sweepers ran, if any of them raised.
    """
    results: list[SweepResult] = []
    failed: dict[str, str] = {}
    for sweeper in sweepers:
        try:
            results.append(await sweeper.sweep())
        except Exception as exc:
            logger.exception(
                "orphan_sweep_failed",
                extra={"namespace": sweeper.namespace, "error": str(exc)},
            )
            failed[sweeper.namespace] = str(exc)
    if failed:
        raise SweepTaskError(results, failed)
    return results


def register_sweep_task(
    broker: AsyncBroker,
    sweeper_factory: Callable[[], Sequence[OrphanSweeper]],
    cron: str | None = None,
) -> AsyncTaskiqDecoratedTask[[], list[dict[str, Any]]]:
    """Register the orphan sweep on ``broker``.

    Args:
        broker: Broker the task is registered on.
        sweeper_factory: Builds the sweepers for one run. Called inside the
            worker, once per run.
        cron: Cron expression for ``LabelScheduleSource``. None registers
            the task without a schedule (manual ``kiq`` only).

    Returns:
        The decorated task.
    """
    labels: dict[str, Any] = {}
    if cron is not None:
        labels["schedule"] = [{"cron": cron}]

    async def sweep_orphans() -> list[dict[str, Any]]:
        results = await run_sweepers(sweeper_factory())
        return [result.to_dict() for result in results]

    logger.debug("sweep_task_registered", extra={"task_name": SWEEP_TASK_NAME, "cron": cron})
    return broker.task(task_name=SWEEP_TASK_NAME, **labels)(sweep_orphans)
