"""Deletion plan data structures.

A plan is the reviewable artifact of deletion order: an ordered list of
steps, each naming an entity kind, where its ids come from and which
reference slots are purged alongside it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lectern.foundation.domain.deletion_value_objects import (
        DependencyEdge,
        EntityKind,
        ReferenceSlot,
    )


class StepAction(StrEnum):
    """What a step does to the rows it selects."""

    DELETE = "delete"
    NULLIFY = "nullify"


@dataclass(frozen=True, slots=True)
class StepSource:
    """Where a step's ids come from.

    Either the explicit root id (``parent`` is None) or every row of the
    step's kind whose ``fk_column`` points at an id selected for ``parent``.
    """

    parent: EntityKind | None = None
    fk_column: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def describe(self) -> str:
        if self.parent is None:
            return "root id"
        return f"children of {self.parent} via {self.fk_column}"


ROOT_SOURCE = StepSource()


@dataclass(frozen=True, slots=True)
class DeletionStep:
    """One entry of a deletion plan.

    Attributes:
        kind: Entity kind the step operates on.
        action: DELETE removes rows; NULLIFY clears the foreign key named by
            each source.
        sources: Parent links the step's ids are drawn from.
        slots: Reference slots purged before the rows are deleted. Always
            empty for NULLIFY steps.
    """

    kind: EntityKind
    action: StepAction
    sources: tuple[StepSource, ...]
    slots: tuple[ReferenceSlot, ...] = ()

    def describe(self) -> str:
        origin = ", ".join(source.describe() for source in self.sources)
        return f"{self.action} {self.kind} ({origin})"


@dataclass(frozen=True, slots=True)
class DeletionPlan:
    """Ordered, children-first steps for deleting one root kind.

    Attributes:
        root_kind: Kind the plan deletes.
        steps: Steps in execution order. The root's DELETE step is last.
        guards: Restricting edges whose parent is deleted by this plan.
            Live children on any guard block the whole cascade.
    """

    root_kind: EntityKind
    steps: tuple[DeletionStep, ...]
    guards: tuple[DependencyEdge, ...] = ()

    def delete_kinds(self) -> list[EntityKind]:
        """Kinds deleted by the plan, in execution order."""
        return [step.kind for step in self.steps if step.action == StepAction.DELETE]

    def position(self, kind: EntityKind, action: StepAction = StepAction.DELETE) -> int:
        """Index of the step for ``kind``/``action``.

        Raises:
            KeyError: No such step in this plan.
        """
        for index, step in enumerate(self.steps):
            if step.kind == kind and step.action == action:
                return index
        raise KeyError(f"{action} {kind} is not part of the {self.root_kind} plan")

    def describe(self) -> list[str]:
        return [step.describe() for step in self.steps]
