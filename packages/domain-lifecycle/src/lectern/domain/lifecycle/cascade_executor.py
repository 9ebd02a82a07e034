"""Cascade executor: runs a deletion plan against storage and the record store.

Each run is an explicit state machine::

    PLANNED -> RUNNING -> SUCCEEDED
                       -> PARTIALLY_SUCCEEDED
                       -> FAILED

Steps execute strictly in plan order. Within a DELETE step, every external
reference owned by the step's rows is deleted concurrently (bounded by a
semaphore, each call under its own timeout) and awaited before the
relational delete is issued. Storage failures are recorded and never stop
the run. A relational failure is fatal: the run goes to FAILED and no later
step is attempted, because the children-first order can no longer be
trusted.

Once RUNNING, a cascade is shielded from cancellation. Re-invoking the same
deletion after a failure is safe because every step is a no-op on rows and
objects that are already gone.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING, Any

from lectern.domain.lifecycle.outcome import DeletionOutcome, OutcomeStatus
from lectern.domain.lifecycle.plan import StepAction
from lectern.foundation.domain.deletion_value_objects import (
    DeleteResult,
    ExternalDeleteFailure,
)
from lectern.foundation.domain.exceptions import (
    DeletionRestrictedError,
    InvalidStateTransitionError,
    NotFoundError,
    RecordStoreError,
    RelationalDeleteError,
)

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from lectern.domain.lifecycle.graph_reader import EntityGraph, EntityGraphReader
    from lectern.domain.lifecycle.plan import DeletionStep
    from lectern.foundation.domain.deletion_value_objects import EntityKind, OwnedReference
    from lectern.foundation.domain.ports.record_store import RecordStorePort
    from lectern.foundation.domain.ports.storage_gateway import StorageGatewayPort

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_CONCURRENT_EXTERNAL = 8


async def run_shielded(
    work: Coroutine[Any, Any, DeletionOutcome],
    pending: set[asyncio.Task[DeletionOutcome]],
    **context: Any,
) -> DeletionOutcome:
    """Run ``work`` as a task that outlives cancellation of its caller.

    The task stays in ``pending`` until it finishes. If the caller is
    cancelled first, the task's eventual result or exception is collected
    and logged, since nobody is left to receive it.
    """
    task = asyncio.ensure_future(work)
    pending.add(task)
    task.add_done_callback(pending.discard)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(partial(_log_abandoned_result, context))
        raise


def _log_abandoned_result(context: dict[str, Any], task: asyncio.Task[DeletionOutcome]) -> None:
    if task.cancelled():
        logger.warning("cascade_task_cancelled", extra=context)
        return
    error = task.exception()
    if error is not None:
        logger.error("cascade_task_failed", extra=context, exc_info=error)
        return
    logger.info(
        "cascade_finished_after_caller_left",
        extra={**context, "status": str(task.result().status)},
    )


class CascadeState(StrEnum):
    """Lifecycle states of a cascade run."""

    PLANNED = "planned"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[CascadeState, frozenset[CascadeState]] = {
    CascadeState.PLANNED: frozenset({CascadeState.RUNNING}),
    CascadeState.RUNNING: frozenset(
        {
            CascadeState.SUCCEEDED,
            CascadeState.PARTIALLY_SUCCEEDED,
            CascadeState.FAILED,
        }
    ),
}


class CascadeRun:
    """Mutable bookkeeping for one execution of a plan.

    Args:
        graph: Materialized ids and references for the root.
    """

    def __init__(self, graph: EntityGraph) -> None:
        self.graph = graph
        self.state = CascadeState.PLANNED
        self.deleted_counts: dict[EntityKind, int] = {}
        self.nullified_counts: dict[EntityKind, int] = {}
        self.failures: list[ExternalDeleteFailure] = []
        self.fatal_error: RelationalDeleteError | None = None

    def transition_to(self, target: CascadeState) -> None:
        """Move to ``target``.

        Raises:
            InvalidStateTransitionError: ``target`` is not reachable from the
                current state. Terminal states allow no transitions.
        """
        allowed = _ALLOWED_TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise InvalidStateTransitionError(
                f"Cannot move cascade for {self.graph.root_kind} {self.graph.root_id} "
                f"from {self.state} to {target}",
                current_state=str(self.state),
                target_state=str(target),
            )
        self.state = target

    def fail(self, error: RelationalDeleteError) -> None:
        self.fatal_error = error
        self.transition_to(CascadeState.FAILED)

    def finish(self) -> None:
        """Settle a RUNNING cascade on SUCCEEDED or PARTIALLY_SUCCEEDED."""
        if self.failures:
            self.transition_to(CascadeState.PARTIALLY_SUCCEEDED)
        else:
            self.transition_to(CascadeState.SUCCEEDED)

    def to_outcome(self) -> DeletionOutcome:
        status = {
            CascadeState.SUCCEEDED: OutcomeStatus.SUCCEEDED,
            CascadeState.PARTIALLY_SUCCEEDED: OutcomeStatus.PARTIALLY_SUCCEEDED,
            CascadeState.FAILED: OutcomeStatus.FAILED,
        }.get(self.state)
        if status is None:
            raise InvalidStateTransitionError(
                f"Cascade for {self.graph.root_kind} {self.graph.root_id} has not finished",
                current_state=str(self.state),
            )
        return DeletionOutcome(
            root_kind=self.graph.root_kind,
            root_id=self.graph.root_id,
            status=status,
            deleted_counts=dict(self.deleted_counts),
            nullified_counts=dict(self.nullified_counts),
            external_delete_failures=tuple(self.failures),
            fatal_error=self.fatal_error,
        )


class CascadeExecutor:
    """Executes deletion plans.

    Args:
        reader: Materializes the graph for a root.
        store: Record store that receives the relational deletes.
        gateway: Storage gateway that receives the external deletes.
        external_timeout: Seconds allowed for each external delete. A timeout
            is recorded as a transient failure.
        max_concurrent_external: Upper bound on in-flight external deletes
            within a step.
    """

    def __init__(
        self,
        reader: EntityGraphReader,
        store: RecordStorePort,
        gateway: StorageGatewayPort,
        *,
        external_timeout: float = DEFAULT_EXTERNAL_TIMEOUT_SECONDS,
        max_concurrent_external: int = DEFAULT_MAX_CONCURRENT_EXTERNAL,
    ) -> None:
        if max_concurrent_external < 1:
            raise ValueError("max_concurrent_external must be at least 1")
        self._reader = reader
        self._store = store
        self._gateway = gateway
        self._external_timeout = external_timeout
        self._max_concurrent_external = max_concurrent_external
        self._pending: set[asyncio.Task[DeletionOutcome]] = set()

    async def execute(self, root_kind: EntityKind, root_id: str) -> DeletionOutcome:
        """Delete ``root_id`` and everything that depends on it.

        Returns:
            DeletionOutcome. A missing root yields status NOT_FOUND, which
            counts as success. A relational failure yields status FAILED with
            ``fatal_error`` set.

        Raises:
            DeletionRestrictedError: A restricting child still references a
                row the plan would delete. Nothing is touched.
        """
        try:
            graph = await self._reader.load_descendants(root_kind, root_id)
        except NotFoundError:
            logger.info(
                "cascade_root_not_found",
                extra={"root_kind": str(root_kind), "root_id": root_id},
            )
            return DeletionOutcome.not_found(root_kind, root_id)

        if graph.blockers:
            raise DeletionRestrictedError(str(root_kind), root_id, graph.blockers)

        run = CascadeRun(graph)
        return await run_shielded(
            self._run(run), self._pending, root_kind=str(root_kind), root_id=root_id
        )

    async def _run(self, run: CascadeRun) -> DeletionOutcome:
        graph = run.graph
        run.transition_to(CascadeState.RUNNING)
        logger.info(
            "cascade_started",
            extra={
                "root_kind": str(graph.root_kind),
                "root_id": graph.root_id,
                "steps": len(graph.plan.steps),
                "references": graph.reference_count,
            },
        )

        for step in graph.plan.steps:
            try:
                if step.action == StepAction.NULLIFY:
                    await self._nullify(step, run)
                else:
                    await self._delete(step, run)
            except RecordStoreError as exc:
                error = RelationalDeleteError(
                    str(step.kind),
                    exc.message,
                    completed_counts={str(k): v for k, v in run.deleted_counts.items()},
                    nullified_counts={str(k): v for k, v in run.nullified_counts.items()},
                    action=str(step.action),
                )
                logger.error(
                    "cascade_step_failed",
                    extra={
                        "root_kind": str(graph.root_kind),
                        "root_id": graph.root_id,
                        "kind": str(step.kind),
                        "action": str(step.action),
                        "error": str(exc),
                    },
                )
                run.fail(error)
                return run.to_outcome()

        run.finish()
        outcome = run.to_outcome()
        logger.info(
            "cascade_completed",
            extra={
                "root_kind": str(graph.root_kind),
                "root_id": graph.root_id,
                "status": str(outcome.status),
                "deleted_counts": {str(k): v for k, v in outcome.deleted_counts.items()},
                "external_failures": len(outcome.external_delete_failures),
            },
        )
        return outcome

    async def _delete(self, step: DeletionStep, run: CascadeRun) -> None:
        ids = run.graph.ids_for(step.kind)
        if not ids:
            return
        references = run.graph.references_for(step.kind)
        if references:
            run.failures.extend(await self._purge(references))
        deleted = await self._store.delete_many(step.kind, ids)
        if deleted:
            run.deleted_counts[step.kind] = run.deleted_counts.get(step.kind, 0) + deleted

    async def _nullify(self, step: DeletionStep, run: CascadeRun) -> None:
        total = 0
        for source in step.sources:
            if source.parent is None or source.fk_column is None:
                continue
            parent_ids = run.graph.ids_for(source.parent)
            if parent_ids:
                total += await self._store.nullify(step.kind, source.fk_column, parent_ids)
        if total:
            run.nullified_counts[step.kind] = run.nullified_counts.get(step.kind, 0) + total

    async def _purge(self, references: list[OwnedReference]) -> list[ExternalDeleteFailure]:
        semaphore = asyncio.Semaphore(self._max_concurrent_external)

        async def attempt(owned: OwnedReference) -> ExternalDeleteFailure | None:
            async with semaphore:
                result = await self._delete_reference(owned)
            if result.succeeded:
                return None
            logger.warning(
                "external_delete_failed",
                extra={
                    "owner_kind": str(owned.owner_kind),
                    "owner_id": owned.owner_id,
                    "reference_kind": str(owned.reference.kind),
                    "key": owned.reference.key,
                    "status": str(result.status),
                    "detail": result.detail,
                },
            )
            return ExternalDeleteFailure(owned=owned, status=result.status, detail=result.detail)

        results = await asyncio.gather(*(attempt(owned) for owned in references))
        return [failure for failure in results if failure is not None]

    async def _delete_reference(self, owned: OwnedReference) -> DeleteResult:
        try:
            return await asyncio.wait_for(
                self._gateway.delete_reference(owned.reference),
                timeout=self._external_timeout,
            )
        except TimeoutError:
            return DeleteResult.transient(f"timed out after {self._external_timeout}s")
        except Exception as exc:
            logger.exception(
                "external_delete_raised",
                extra={"key": owned.reference.key, "owner_kind": str(owned.owner_kind)},
            )
            return DeleteResult.permanent(f"{type(exc).__name__}: {exc}")
