"""Structured result of one cascade run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lectern.foundation.domain.deletion_value_objects import (
        EntityKind,
        ExternalDeleteFailure,
    )
    from lectern.foundation.domain.exceptions import RelationalDeleteError


class OutcomeStatus(StrEnum):
    """Terminal status reported to the caller."""

    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    FAILED = "failed"
    NOT_FOUND = "not_found"


_MESSAGES = {
    OutcomeStatus.SUCCEEDED: "Deleted.",
    OutcomeStatus.PARTIALLY_SUCCEEDED: (
        "Deleted. Some stored files may take longer to fully disappear."
    ),
    OutcomeStatus.FAILED: "Deletion did not complete. The operation can be safely retried.",
    OutcomeStatus.NOT_FOUND: "Nothing to delete; the entity no longer exists.",
}


@dataclass(frozen=True)
class DeletionOutcome:
    """What a cascade run did.

    Attributes:
        root_kind: Kind of the deleted root.
        root_id: Identifier of the deleted root.
        status: Terminal status.
        deleted_counts: Rows removed per kind. Kinds with zero rows are omitted.
        nullified_counts: Rows whose foreign key was cleared, per kind.
        external_delete_failures: References whose remote delete failed.
        fatal_error: The relational failure that aborted the run, if any.
    """

    root_kind: EntityKind
    root_id: str
    status: OutcomeStatus
    deleted_counts: dict[EntityKind, int] = field(default_factory=dict)
    nullified_counts: dict[EntityKind, int] = field(default_factory=dict)
    external_delete_failures: tuple[ExternalDeleteFailure, ...] = ()
    fatal_error: RelationalDeleteError | None = None

    @classmethod
    def not_found(cls, root_kind: EntityKind, root_id: str) -> DeletionOutcome:
        return cls(root_kind=root_kind, root_id=root_id, status=OutcomeStatus.NOT_FOUND)

    @property
    def is_success(self) -> bool:
        """True unless a relational delete failed. A missing root is success."""
        return self.status != OutcomeStatus.FAILED

    @property
    def message(self) -> str:
        return _MESSAGES[self.status]

    def raise_for_failure(self) -> None:
        """Raise the fatal relational error, if the run failed."""
        if self.fatal_error is not None:
            raise self.fatal_error

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation for API responses and task results."""
        return {
            "root_kind": str(self.root_kind),
            "root_id": self.root_id,
            "status": str(self.status),
            "message": self.message,
            "deleted_counts": {str(k): v for k, v in self.deleted_counts.items()},
            "nullified_counts": {str(k): v for k, v in self.nullified_counts.items()},
            "external_delete_failures": [
                {
                    "kind": str(failure.reference.kind),
                    "key": failure.reference.key,
                    "owner_kind": str(failure.owned.owner_kind),
                    "owner_id": failure.owned.owner_id,
                    "status": str(failure.status),
                    "detail": failure.detail,
                }
                for failure in self.external_delete_failures
            ],
            "error": None if self.fatal_error is None else self.fatal_error.message,
        }
