"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions include structured error codes and context for consistent
API error handling and logging across packages.

Example:
    >>> from lectern.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("courses", "c1")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "CascadeInProgressError",
    "ConflictError",
    "DeletionRestrictedError",
    "DomainError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "PlanInvariantViolationError",
    "RecordStoreError",
    "RelationalDeleteError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class to enable consistent API error
    handling and logging.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (entity kinds, ids).

    Example:
        >>> raise DomainError("Operation failed", context={"entity_id": "123"})
        DomainError: Operation failed (entity_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
                     Values are typically strings or primitive types.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found. The cascade executor treats a missing
    deletion root as an already-achieved end state, so this error never
    escapes ``delete_entity``.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.

    Example:
        >>> raise NotFoundError("courses", "c1")
        NotFoundError: courses not found: c1
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "courses", "users").
            resource_id: Identifier of missing resource.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Maps to HTTP 422 Unprocessable Entity.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("kind", "Unknown entity kind 'widgets'")
        ValidationError: Validation failed for 'kind': Unknown entity kind 'widgets'
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation.
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when operation conflicts with current system state.

    Maps to HTTP 409 Conflict.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.

    Example:
        >>> raise ConflictError("Resource already exists", resource_id="c1")
        ConflictError: Conflict: Resource already exists (resource_id=c1)
    """

    error_code: str = "CONFLICT"

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict.
            **context: Additional debugging context.
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class InvalidStateTransitionError(ConflictError):
    """Raised when a state machine transition is not allowed.

    Maps to HTTP 409 Conflict. Inherits from ConflictError for
    consistent error handling at the API layer.

    Attributes:
        error_code: "INVALID_STATE_TRANSITION" (class constant).

    Example:
        >>> raise InvalidStateTransitionError(
        ...     "Cannot start cascade: current state is SUCCEEDED"
        ... )
    """

    error_code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize invalid state transition error.

        Args:
            message: Description of the invalid transition attempt.
            **context: Additional debugging context (e.g., current_state, target_state).
        """
        super().__init__(message, **context)


class DeletionRestrictedError(ConflictError):
    """Raised when a root cannot be deleted while restricting children exist.

    A category still used by courses is the canonical case: the schema marks
    the foreign key as restricting, so the cascade refuses to start rather
    than orphan or silently remove the children.

    Attributes:
        error_code: "DELETION_RESTRICTED" (class constant).
        blockers: Mapping of child kind to number of live rows blocking deletion.
    """

    error_code: str = "DELETION_RESTRICTED"

    def __init__(self, kind: str, entity_id: str, blockers: dict[str, int]) -> None:
        self.blockers = blockers
        summary = ", ".join(f"{count} {child}" for child, count in sorted(blockers.items()))
        super().__init__(
            f"Cannot delete {kind} {entity_id} while it still has {summary}",
            kind=kind,
            entity_id=entity_id,
            blockers=blockers,
        )


class CascadeInProgressError(ConflictError):
    """Raised when another cascade already holds a lock on an overlapping subgraph.

    Attributes:
        error_code: "CASCADE_IN_PROGRESS" (class constant).
    """

    error_code: str = "CASCADE_IN_PROGRESS"

    def __init__(self, lock_key: str) -> None:
        super().__init__("A deletion touching this entity is already running", lock_key=lock_key)


class RecordStoreError(DomainError):
    """Raised by record store adapters when a relational call fails.

    Adapters wrap driver errors (constraint violations, lost connections)
    into this type so the domain layer never depends on driver exceptions.

    Attributes:
        error_code: "RECORD_STORE_ERROR" (class constant).
    """

    error_code: str = "RECORD_STORE_ERROR"


class RelationalDeleteError(DomainError):
    """A relational delete failed part way through a cascade.

    Fatal for the remainder of the cascade. Carries the counts of what did
    complete so the caller can report progress; retrying the whole
    ``delete_entity`` call is safe because every step is idempotent.

    Attributes:
        error_code: "RELATIONAL_DELETE_FAILED" (class constant).
        kind: Entity kind whose step failed.
        completed_counts: Rows deleted by earlier steps, keyed by kind.
        nullified_counts: Rows whose foreign key earlier steps cleared, keyed by kind.
    """

    error_code: str = "RELATIONAL_DELETE_FAILED"

    def __init__(
        self,
        kind: str,
        reason: str,
        completed_counts: dict[str, int] | None = None,
        nullified_counts: dict[str, int] | None = None,
        **extra_context: Any,
    ) -> None:
        self.kind = kind
        self.reason = reason
        self.completed_counts = dict(completed_counts or {})
        self.nullified_counts = dict(nullified_counts or {})
        super().__init__(
            f"Deleting {kind} failed: {reason}",
            {
                "kind": kind,
                "reason": reason,
                "completed_counts": self.completed_counts,
                "nullified_counts": self.nullified_counts,
                **extra_context,
            },
        )


class PlanInvariantViolationError(DomainError):
    """The declared dependency graph for an entity kind is not acyclic.

    A programming error in the schema definition. Raised when a planner is
    built (startup/test time), never expected for a real request.

    Attributes:
        error_code: "PLAN_INVARIANT_VIOLATION" (class constant).
        cycle: Entity kinds forming the detected cycle, in traversal order.
    """

    error_code: str = "PLAN_INVARIANT_VIOLATION"

    def __init__(self, root_kind: str, cycle: list[str]) -> None:
        self.root_kind = root_kind
        self.cycle = cycle
        path = " -> ".join(cycle)
        super().__init__(
            f"Dependency cycle reachable from {root_kind}: {path}",
            {"root_kind": root_kind, "cycle": cycle},
        )


class AuthenticationError(DomainError):
    """Raised when no authenticated principal is available.

    Maps to HTTP 401 Unauthorized.

    Attributes:
        error_code: Machine-readable error code (e.g., "MISSING_PRINCIPAL").
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.error_code = error_code
        super().__init__(message, context)


class AuthorizationError(DomainError):
    """Raised when authenticated principal lacks required permissions.

    Maps to HTTP 403 Forbidden.

    Example:
        >>> raise AuthorizationError("Missing permission: users_delete")
    """

    error_code: str = "AUTHORIZATION_ERROR"
