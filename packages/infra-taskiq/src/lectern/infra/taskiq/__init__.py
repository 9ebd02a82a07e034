"""Lectern Infra TaskIQ -- broker factory and the scheduled orphan sweep."""

from lectern.infra.taskiq.broker import (
    broker,
    get_broker,
    get_result_backend,
    get_scheduler,
    result_backend,
    scheduler,
)
from lectern.infra.taskiq.errors import SweepTaskError, TaskIQBrokerError, TaskIQError
from lectern.infra.taskiq.lifespan import lifespan_contribution
from lectern.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings
from lectern.infra.taskiq.sweep_tasks import SWEEP_TASK_NAME, register_sweep_task, run_sweepers

__all__ = [
    "SWEEP_TASK_NAME",
    "SweepTaskError",
    "TaskIQBrokerError",
    "TaskIQError",
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_result_backend",
    "get_scheduler",
    "get_taskiq_settings",
    "lifespan_contribution",
    "register_sweep_task",
    "result_backend",
    "run_sweepers",
    "scheduler",
]
