"""Deletion planner: turns the static dependency graph into ordered plans.

Planning is a pure function of the graph. Order is a depth-first post-order
walk over cascading edges starting at the root kind, visiting children in
edge declaration order, so every kind is emitted after all of its cascading
descendants. Set-null children become NULLIFY steps placed immediately
before their parent's DELETE step. Restricting children become guards.

A cycle among cascading edges is a schema bug: it is rejected when the
planner is built, never discovered on a live request.

Usage:
    planner = DeletionPlanner(graph)
    plan = planner.plan_for(EntityKind.COURSE)
    plan.describe()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lectern.domain.lifecycle.plan import (
    ROOT_SOURCE,
    DeletionPlan,
    DeletionStep,
    StepAction,
    StepSource,
)
from lectern.foundation.domain.deletion_value_objects import DeletePolicy
from lectern.foundation.domain.exceptions import PlanInvariantViolationError

if TYPE_CHECKING:
    from lectern.domain.lifecycle.dependency_graph import DependencyGraph
    from lectern.foundation.domain.deletion_value_objects import EntityKind

logger = logging.getLogger(__name__)


class DeletionPlanner:
    """Computes and caches one :class:`DeletionPlan` per root kind.

    Args:
        graph: Dependency graph to plan over.
        validate: Plan every kind up front so cycles surface at startup.
            Defaults to True.

    Raises:
        PlanInvariantViolationError: On construction, if ``validate`` is set
            and any kind reaches a cascading cycle.
    """

    def __init__(self, graph: DependencyGraph, *, validate: bool = True) -> None:
        self._graph = graph
        self._cache: dict[EntityKind, DeletionPlan] = {}
        if validate:
            self.validate()

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def validate(self) -> None:
        """Plan every kind in the graph, raising on the first cycle."""
        for kind in self._graph.kinds:
            self.plan_for(kind)
        logger.debug("deletion_plans_validated", extra={"kinds": len(self._graph.kinds)})

    def plan_for(self, root_kind: EntityKind) -> DeletionPlan:
        """Return the children-first plan for deleting a ``root_kind`` row.

        Raises:
            PlanInvariantViolationError: The cascading edges reachable from
                ``root_kind`` contain a cycle.
        """
        cached = self._cache.get(root_kind)
        if cached is not None:
            return cached
        plan = self._build(root_kind)
        self._cache[root_kind] = plan
        return plan

    def _build(self, root_kind: EntityKind) -> DeletionPlan:
        order: list[tuple[EntityKind, StepAction]] = []
        done: set[EntityKind] = set()
        path: list[EntityKind] = []

        def visit(kind: EntityKind) -> None:
            if kind in path:
                cycle = [*path[path.index(kind) :], kind]
                raise PlanInvariantViolationError(root_kind, [str(k) for k in cycle])
            if kind in done:
                return
            path.append(kind)
            for edge in self._graph.edges_from(kind, DeletePolicy.CASCADE):
                visit(edge.child)
            path.pop()
            done.add(kind)
            for edge in self._graph.edges_from(kind, DeletePolicy.SET_NULL):
                if (edge.child, StepAction.NULLIFY) not in order:
                    order.append((edge.child, StepAction.NULLIFY))
            order.append((kind, StepAction.DELETE))

        visit(root_kind)

        steps: list[DeletionStep] = []
        for kind, action in order:
            policy = DeletePolicy.CASCADE if action == StepAction.DELETE else DeletePolicy.SET_NULL
            sources: list[StepSource] = []
            if kind == root_kind and action == StepAction.DELETE:
                sources.append(ROOT_SOURCE)
            sources.extend(
                StepSource(parent=edge.parent, fk_column=edge.fk_column)
                for edge in self._graph.edges_to(kind)
                if edge.policy == policy and edge.parent in done
            )
            slots = self._graph.slots_for(kind) if action == StepAction.DELETE else ()
            steps.append(
                DeletionStep(kind=kind, action=action, sources=tuple(sources), slots=slots)
            )

        guards = tuple(
            edge
            for edge in self._graph.edges
            if edge.policy == DeletePolicy.RESTRICT and edge.parent in done
        )
        return DeletionPlan(root_kind=root_kind, steps=tuple(steps), guards=guards)
