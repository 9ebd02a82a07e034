"""Lectern Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks for the course
platform's entity lifecycle: exceptions, deletion value objects, the
authenticated principal, and port interfaces.
"""

from lectern.foundation.domain.deletion_value_objects import (
    ROOT_KINDS,
    DeletePolicy,
    DeleteResult,
    DeleteStatus,
    DependencyEdge,
    EntityKind,
    ExternalDeleteFailure,
    ExternalReference,
    ExternalReferenceKind,
    OwnedReference,
    ReferenceSlot,
    StoredObject,
)
from lectern.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CascadeInProgressError,
    ConflictError,
    DeletionRestrictedError,
    DomainError,
    InvalidStateTransitionError,
    NotFoundError,
    PlanInvariantViolationError,
    RecordStoreError,
    RelationalDeleteError,
    ValidationError,
)
from lectern.foundation.domain.ports import (
    AuthorizationPolicyPort,
    CascadeLockPort,
    RecordStorePort,
    StorageGatewayPort,
    StorageNamespacePort,
)
from lectern.foundation.domain.principal import Principal, PrincipalType

__all__ = [
    "ROOT_KINDS",
    "AuthenticationError",
    "AuthorizationError",
    "AuthorizationPolicyPort",
    "CascadeInProgressError",
    "CascadeLockPort",
    "ConflictError",
    "DeletePolicy",
    "DeleteResult",
    "DeleteStatus",
    "DeletionRestrictedError",
    "DependencyEdge",
    "DomainError",
    "EntityKind",
    "ExternalDeleteFailure",
    "ExternalReference",
    "ExternalReferenceKind",
    "InvalidStateTransitionError",
    "NotFoundError",
    "OwnedReference",
    "PlanInvariantViolationError",
    "Principal",
    "PrincipalType",
    "RecordStoreError",
    "RecordStorePort",
    "ReferenceSlot",
    "RelationalDeleteError",
    "StorageGatewayPort",
    "StorageNamespacePort",
    "StoredObject",
    "ValidationError",
]
