"""Caller boundary for permanent entity deletion.

``EntityDeletionService.delete_entity`` is the only operation surrounding
code invokes. It validates the kind, checks authorization once, locks the
root and every root-capable entity in its subgraph, and hands off to the
cascade executor. Planning, ordering and failure policy stay internal.

Usage:
    service = EntityDeletionService(planner, reader, executor, lock, policy)
    outcome = await service.delete_entity("courses", course_id, principal)
    if not outcome.is_success:
        ...  # retry later; every step is idempotent
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from lectern.domain.lifecycle.cascade_executor import run_shielded
from lectern.domain.lifecycle.locks import lock_key
from lectern.domain.lifecycle.plan import StepAction
from lectern.foundation.domain.deletion_value_objects import ROOT_KINDS, EntityKind
from lectern.foundation.domain.exceptions import (
    AuthenticationError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lectern.domain.lifecycle.cascade_executor import CascadeExecutor
    from lectern.domain.lifecycle.graph_reader import EntityGraph, EntityGraphReader
    from lectern.domain.lifecycle.outcome import DeletionOutcome
    from lectern.domain.lifecycle.planner import DeletionPlanner
    from lectern.foundation.domain.ports.authorization_policy import AuthorizationPolicyPort
    from lectern.foundation.domain.ports.cascade_lock import CascadeLockPort
    from lectern.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewStep:
    kind: EntityKind
    action: StepAction
    count: int
    references: int = 0


@dataclass(frozen=True)
class DeletionPreview:
    """Dry-run view of what ``delete_entity`` would do.

    Attributes:
        root_kind: Kind of the root.
        root_id: Identifier of the root.
        exists: False when the root is already gone.
        steps: Plan steps with materialized row and reference counts.
        blockers: Restricting children that would block the deletion.
    """

    root_kind: EntityKind
    root_id: str
    exists: bool
    steps: tuple[PreviewStep, ...] = ()
    blockers: dict[str, int] = field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        return sum(step.count for step in self.steps if step.action == StepAction.DELETE)

    @property
    def total_references(self) -> int:
        return sum(step.references for step in self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_kind": str(self.root_kind),
            "root_id": self.root_id,
            "exists": self.exists,
            "steps": [
                {
                    "kind": str(step.kind),
                    "action": str(step.action),
                    "count": step.count,
                    "references": step.references,
                }
                for step in self.steps
            ],
            "blockers": dict(self.blockers),
            "total_rows": self.total_rows,
            "total_references": self.total_references,
        }


def parse_root_kind(kind: EntityKind | str) -> EntityKind:
    """Coerce ``kind`` to a deletable root kind.

    Raises:
        ValidationError: Unknown kind, or a kind that is only ever deleted
            as part of another entity's cascade.
    """
    try:
        parsed = EntityKind(kind)
    except ValueError:
        raise ValidationError("kind", f"Unknown entity kind '{kind}'") from None
    if parsed not in ROOT_KINDS:
        raise ValidationError("kind", f"'{parsed}' cannot be deleted directly")
    return parsed


class EntityDeletionService:
    """Entry point for deleting a root entity and its dependents.

    Args:
        planner: Plans per root kind.
        reader: Graph reader used for previews and lock computation.
        executor: Runs the cascade.
        lock: Mutual exclusion between overlapping cascades.
        authorization: Optional policy. When set, every call needs a principal.
    """

    def __init__(
        self,
        planner: DeletionPlanner,
        reader: EntityGraphReader,
        executor: CascadeExecutor,
        lock: CascadeLockPort,
        authorization: AuthorizationPolicyPort | None = None,
    ) -> None:
        self._planner = planner
        self._reader = reader
        self._executor = executor
        self._lock = lock
        self._authorization = authorization
        self._pending: set[asyncio.Task[DeletionOutcome]] = set()

    async def delete_entity(
        self,
        kind: EntityKind | str,
        entity_id: str,
        principal: Principal | None = None,
    ) -> DeletionOutcome:
        """Permanently delete one root entity with everything that depends on it.

        Args:
            kind: Root kind (enum or table name).
            entity_id: Root identifier.
            principal: Acting principal. Required when a policy is configured.

        Returns:
            DeletionOutcome. NOT_FOUND is a success; FAILED carries the
            relational error and partial counts.

        Raises:
            ValidationError: ``kind`` is not a root kind.
            AuthenticationError: A policy is configured and no principal given.
            AuthorizationError: The policy refused the deletion.
            DeletionRestrictedError: Restricting children block the deletion.
            CascadeInProgressError: An overlapping cascade holds the lock.
        """
        root_kind = parse_root_kind(kind)
        self._authorize(principal, root_kind, entity_id)

        keys = await self._lock_keys(root_kind, entity_id)
        logger.info(
            "entity_deletion_requested",
            extra={
                "root_kind": str(root_kind),
                "root_id": entity_id,
                "user_id": principal.user_id if principal else None,
                "lock_keys": len(keys),
            },
        )
        return await run_shielded(
            self._locked_execute(keys, root_kind, entity_id),
            self._pending,
            root_kind=str(root_kind),
            root_id=entity_id,
        )

    async def preview(self, kind: EntityKind | str, entity_id: str) -> DeletionPreview:
        """Describe what deleting the entity would remove, without changing anything."""
        root_kind = parse_root_kind(kind)
        try:
            graph = await self._reader.load_descendants(root_kind, entity_id)
        except NotFoundError:
            return DeletionPreview(root_kind=root_kind, root_id=entity_id, exists=False)

        steps = []
        for step in graph.plan.steps:
            if step.action == StepAction.NULLIFY:
                count = len(graph.nullify_ids.get(step.kind, []))
                references = 0
            else:
                count = len(graph.ids_for(step.kind))
                references = len(graph.references_for(step.kind))
            steps.append(
                PreviewStep(kind=step.kind, action=step.action, count=count, references=references)
            )
        return DeletionPreview(
            root_kind=root_kind,
            root_id=entity_id,
            exists=True,
            steps=tuple(steps),
            blockers=dict(graph.blockers),
        )

    def _authorize(self, principal: Principal | None, kind: EntityKind, entity_id: str) -> None:
        if self._authorization is None:
            return
        if principal is None:
            raise AuthenticationError("Authentication required", error_code="MISSING_PRINCIPAL")
        self._authorization.authorize_deletion(principal, kind, entity_id)

    async def _locked_execute(
        self, keys: Sequence[str], root_kind: EntityKind, entity_id: str
    ) -> DeletionOutcome:
        # Runs as one shielded unit so the lock lives exactly as long as the cascade.
        async with self._lock.hold(keys):
            return await self._executor.execute(root_kind, entity_id)

    async def _lock_keys(self, root_kind: EntityKind, entity_id: str) -> list[str]:
        keys = [lock_key(root_kind, entity_id)]
        try:
            graph = await self._reader.load_descendants(root_kind, entity_id)
        except NotFoundError:
            return keys
        keys.extend(_subgraph_keys(graph))
        return list(dict.fromkeys(keys))


def _subgraph_keys(graph: EntityGraph) -> list[str]:
    return [
        lock_key(kind, entity_id)
        for kind, ids in graph.ids.items()
        if kind in ROOT_KINDS
        for entity_id in ids
    ]
