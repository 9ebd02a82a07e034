"""Derives the deletion dependency graph from SQLAlchemy foreign keys.

Usage:
    from lectern.infra.persistence.dependency_graph import build_dependency_graph

    graph = build_dependency_graph()          # course-platform schema
    planner = DeletionPlanner(graph)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lectern.domain.lifecycle.dependency_graph import DependencyGraph
from lectern.foundation.domain.deletion_value_objects import (
    DeletePolicy,
    DependencyEdge,
    EntityKind,
    ExternalReferenceKind,
    ReferenceSlot,
)
from lectern.infra.persistence.schema import metadata as platform_metadata

if TYPE_CHECKING:
    from sqlalchemy import ForeignKey, MetaData

_ONDELETE_POLICIES = {
    "CASCADE": DeletePolicy.CASCADE,
    "SET NULL": DeletePolicy.SET_NULL,
    "RESTRICT": DeletePolicy.RESTRICT,
    "NO ACTION": DeletePolicy.RESTRICT,
}


def _policy(fk: ForeignKey) -> DeletePolicy:
    declared = fk.info.get("on_parent_delete")
    if declared is not None:
        return DeletePolicy(declared)
    if fk.ondelete:
        return _ONDELETE_POLICIES.get(fk.ondelete.upper(), DeletePolicy.CASCADE)
    return DeletePolicy.CASCADE


def edges_from_metadata(metadata: MetaData) -> tuple[list[DependencyEdge], list[ReferenceSlot]]:
    """Read edges and reference slots from every table named after an entity kind.

    Tables whose name is not an :class:`EntityKind` are ignored, as are
    foreign keys pointing at such tables.

    Returns:
        Edges and slots, both in table then column declaration order.
    """
    known = {kind.value for kind in EntityKind}
    edges: list[DependencyEdge] = []
    slots: list[ReferenceSlot] = []
    for table in metadata.tables.values():
        if table.name not in known:
            continue
        child = EntityKind(table.name)
        for column in table.columns:
            ref_kind = column.info.get("external_ref")
            if ref_kind is not None:
                slots.append(
                    ReferenceSlot(
                        owner=child, column=column.name, kind=ExternalReferenceKind(ref_kind)
                    )
                )
            for fk in column.foreign_keys:
                target = fk.column.table.name
                if target not in known:
                    continue
                edges.append(
                    DependencyEdge(
                        parent=EntityKind(target),
                        child=child,
                        fk_column=column.name,
                        policy=_policy(fk),
                    )
                )
    return edges, slots


def build_dependency_graph(metadata: MetaData | None = None) -> DependencyGraph:
    """Build the dependency graph for ``metadata`` (the platform schema by default)."""
    edges, slots = edges_from_metadata(metadata if metadata is not None else platform_metadata)
    return DependencyGraph(edges=edges, reference_slots=slots)
