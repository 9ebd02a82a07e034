"""Static dependency graph between entity kinds.

The graph is a value: a list of foreign-key edges and reference slots in
declaration order. It is normally derived from the relational schema (see
``lectern.infra.persistence.dependency_graph``) so the deletion order
follows the real foreign keys rather than hand-written call sequences.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from lectern.foundation.domain.deletion_value_objects import (
    DeletePolicy,
    DependencyEdge,
    EntityKind,
    ReferenceSlot,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class DependencyGraph:
    """Foreign-key edges and external reference slots for every entity kind.

    Edge order is significant: children of a parent are visited in the order
    their edges were declared, which fixes tie-breaking in the deletion plan.

    Example:
        >>> graph = DependencyGraph(
        ...     edges=[DependencyEdge(EntityKind.COURSE, EntityKind.CHAPTER, "course_id")],
        ...     reference_slots=[],
        ... )
        >>> [e.child for e in graph.edges_from(EntityKind.COURSE)]
        [<EntityKind.CHAPTER: 'chapters'>]
    """

    def __init__(
        self,
        edges: Iterable[DependencyEdge],
        reference_slots: Iterable[ReferenceSlot],
        kinds: Iterable[EntityKind] | None = None,
    ) -> None:
        self._edges: tuple[DependencyEdge, ...] = tuple(edges)
        self._slots: tuple[ReferenceSlot, ...] = tuple(reference_slots)
        self._children: dict[EntityKind, list[DependencyEdge]] = defaultdict(list)
        self._parents: dict[EntityKind, list[DependencyEdge]] = defaultdict(list)
        self._slots_by_owner: dict[EntityKind, list[ReferenceSlot]] = defaultdict(list)

        seen: dict[EntityKind, None] = dict.fromkeys(kinds or ())
        for edge in self._edges:
            self._children[edge.parent].append(edge)
            self._parents[edge.child].append(edge)
            seen.setdefault(edge.parent)
            seen.setdefault(edge.child)
        for slot in self._slots:
            self._slots_by_owner[slot.owner].append(slot)
            seen.setdefault(slot.owner)
        self._kinds = tuple(seen)

    @property
    def kinds(self) -> tuple[EntityKind, ...]:
        """Every kind mentioned by an edge or slot, in first-seen order."""
        return self._kinds

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return self._edges

    @property
    def reference_slots(self) -> tuple[ReferenceSlot, ...]:
        return self._slots

    def edges_from(
        self,
        parent: EntityKind,
        policy: DeletePolicy | None = None,
    ) -> list[DependencyEdge]:
        """Edges whose parent is ``parent``, optionally filtered by policy."""
        edges = self._children.get(parent, [])
        if policy is None:
            return list(edges)
        return [edge for edge in edges if edge.policy == policy]

    def edges_to(self, child: EntityKind) -> list[DependencyEdge]:
        """Edges whose child is ``child``."""
        return list(self._parents.get(child, []))

    def slots_for(self, kind: EntityKind) -> tuple[ReferenceSlot, ...]:
        """Reference slots stored on rows of ``kind``."""
        return tuple(self._slots_by_owner.get(kind, ()))
