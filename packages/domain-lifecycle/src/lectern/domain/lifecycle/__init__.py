"""Lectern Domain Lifecycle -- cascading deletion of course-platform entities.

Planner, graph reader, cascade executor, orphan sweeper and the
``EntityDeletionService`` boundary, all wired through foundation ports.
"""

from lectern.domain.lifecycle.authorization import RolePermissionPolicy
from lectern.domain.lifecycle.cascade_executor import CascadeExecutor, CascadeRun, CascadeState
from lectern.domain.lifecycle.deletion_service import (
    DeletionPreview,
    EntityDeletionService,
    parse_root_kind,
)
from lectern.domain.lifecycle.dependency_graph import DependencyGraph
from lectern.domain.lifecycle.graph_reader import EntityGraph, EntityGraphReader
from lectern.domain.lifecycle.locks import InProcessCascadeLock, lock_key
from lectern.domain.lifecycle.outcome import DeletionOutcome, OutcomeStatus
from lectern.domain.lifecycle.plan import DeletionPlan, DeletionStep, StepAction, StepSource
from lectern.domain.lifecycle.planner import DeletionPlanner
from lectern.domain.lifecycle.settings import LifecycleSettings, get_lifecycle_settings
from lectern.domain.lifecycle.sweeper import OrphanSweeper, SweepResult

__all__ = [
    "CascadeExecutor",
    "CascadeRun",
    "CascadeState",
    "DeletionOutcome",
    "DeletionPlan",
    "DeletionPlanner",
    "DeletionPreview",
    "DeletionStep",
    "DependencyGraph",
    "EntityDeletionService",
    "EntityGraph",
    "EntityGraphReader",
    "InProcessCascadeLock",
    "LifecycleSettings",
    "OrphanSweeper",
    "OutcomeStatus",
    "RolePermissionPolicy",
    "StepAction",
    "StepSource",
    "SweepResult",
    "get_lifecycle_settings",
    "lock_key",
    "parse_root_kind",
]
