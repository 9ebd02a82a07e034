"""Materializes the concrete ids and references a deletion plan touches.

The reader walks a plan parents-first (the reverse of execution order),
asking the record store for the children of ids already collected. Only
identifiers and reference keys are loaded, never full records. It never
mutates anything, so it doubles as a dry-run preview.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lectern.domain.lifecycle.plan import StepAction
from lectern.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from lectern.domain.lifecycle.plan import DeletionPlan, DeletionStep
    from lectern.domain.lifecycle.planner import DeletionPlanner
    from lectern.foundation.domain.deletion_value_objects import EntityKind, OwnedReference
    from lectern.foundation.domain.ports.record_store import RecordStorePort

logger = logging.getLogger(__name__)


@dataclass
class EntityGraph:
    """Ids and references reachable from one root row.

    Attributes:
        root_kind: Kind of the root.
        root_id: Identifier of the root.
        plan: Plan the graph was materialized for.
        ids: Ids to delete, per kind, in discovery order.
        nullify_ids: Ids whose foreign key will be cleared, per kind.
        references: Non-empty external references owned by rows in ``ids``.
        blockers: Live restricting children per child kind.
    """

    root_kind: EntityKind
    root_id: str
    plan: DeletionPlan
    ids: dict[EntityKind, list[str]] = field(default_factory=dict)
    nullify_ids: dict[EntityKind, list[str]] = field(default_factory=dict)
    references: dict[EntityKind, list[OwnedReference]] = field(default_factory=dict)
    blockers: dict[str, int] = field(default_factory=dict)

    def ids_for(self, kind: EntityKind) -> list[str]:
        return self.ids.get(kind, [])

    def references_for(self, kind: EntityKind) -> list[OwnedReference]:
        return self.references.get(kind, [])

    @property
    def reference_count(self) -> int:
        return sum(len(refs) for refs in self.references.values())

    def counts(self) -> dict[EntityKind, int]:
        """Rows per kind that the plan would delete."""
        return {kind: len(ids) for kind, ids in self.ids.items() if ids}


def _dedupe(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class EntityGraphReader:
    """Loads the descendant ids and reference keys for a deletion root.

    Args:
        planner: Source of plans.
        store: Record store to read from.
    """

    def __init__(self, planner: DeletionPlanner, store: RecordStorePort) -> None:
        self._planner = planner
        self._store = store

    async def load_descendants(self, root_kind: EntityKind, root_id: str) -> EntityGraph:
        """Materialize every id and reference the plan for ``root_kind`` touches.

        Args:
            root_kind: Kind of the root row.
            root_id: Identifier of the root row.

        Returns:
            EntityGraph with ids per kind, references per kind and any
            restricting children.

        Raises:
            NotFoundError: The root row does not exist.
        """
        if await self._store.find_one(root_kind, root_id) is None:
            raise NotFoundError(str(root_kind), root_id)

        plan = self._planner.plan_for(root_kind)
        graph = EntityGraph(root_kind=root_kind, root_id=root_id, plan=plan)

        for step in reversed(plan.steps):
            ids = await self._collect_ids(step, graph)
            if step.action == StepAction.NULLIFY:
                graph.nullify_ids[step.kind] = ids
                continue
            graph.ids[step.kind] = ids
            if ids and step.slots:
                graph.references[step.kind] = await self._store.load_references(
                    step.kind, ids, step.slots
                )

        for edge in plan.guards:
            parent_ids = graph.ids_for(edge.parent)
            if not parent_ids:
                continue
            children = await self._store.find_child_ids(edge.child, edge.fk_column, parent_ids)
            doomed = set(graph.ids_for(edge.child))
            live = [child_id for child_id in children if child_id not in doomed]
            if live:
                blocked = str(edge.child)
                graph.blockers[blocked] = graph.blockers.get(blocked, 0) + len(live)

        logger.debug(
            "entity_graph_loaded",
            extra={
                "root_kind": str(root_kind),
                "root_id": root_id,
                "counts": {str(k): v for k, v in graph.counts().items()},
                "references": graph.reference_count,
            },
        )
        return graph

    async def _collect_ids(self, step: DeletionStep, graph: EntityGraph) -> list[str]:
        collected: list[str] = []
        for source in step.sources:
            if source.parent is None or source.fk_column is None:
                collected.append(graph.root_id)
                continue
            parent_ids = graph.ids_for(source.parent)
            if parent_ids:
                collected.extend(
                    await self._store.find_child_ids(step.kind, source.fk_column, parent_ids)
                )
        return _dedupe(collected)
