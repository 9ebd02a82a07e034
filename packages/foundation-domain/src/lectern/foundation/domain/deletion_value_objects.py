"""Value objects for entity lifecycle and cascading deletion.

Immutable domain primitives shared by the planner, executor, storage
gateway and record store adapters. Entity kinds double as relational
table names so adapters can address rows without a second mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class EntityKind(StrEnum):
    """Every record kind that takes part in a deletion cascade.

    Uses StrEnum so values serialize natively and match table names.
    """

    USER = "users"
    CATEGORY = "categories"
    COURSE = "courses"
    CHAPTER = "chapters"
    LESSON = "lessons"
    ASSIGNMENT = "assignments"
    ASSIGNMENT_SUBMISSION = "assignment_submissions"
    RESOURCE = "resources"
    LESSON_PROGRESS = "lesson_progress"
    ENROLLMENT = "enrollments"
    LIVE_LESSON = "live_lessons"
    LIVE_LESSON_ATTENDEE = "live_lesson_attendees"
    PAGE = "pages"
    USER_SETTINGS = "user_settings"
    SECURITY_EVENT = "security_events"
    DEVICE_LOG = "device_logs"
    DEVICE_TRACKING = "device_tracking"
    PAYMENT_LOG = "payment_logs"
    CODE_REDEMPTION = "code_redemptions"
    NOTIFICATION = "notifications"
    SESSION = "sessions"
    ACCOUNT = "accounts"


#: Kinds a caller may name as the root of ``delete_entity``.
ROOT_KINDS: frozenset[EntityKind] = frozenset(
    {
        EntityKind.USER,
        EntityKind.COURSE,
        EntityKind.CHAPTER,
        EntityKind.LESSON,
        EntityKind.ASSIGNMENT,
        EntityKind.ASSIGNMENT_SUBMISSION,
        EntityKind.RESOURCE,
        EntityKind.PAGE,
        EntityKind.CATEGORY,
        EntityKind.LIVE_LESSON,
    }
)


class ExternalReferenceKind(StrEnum):
    """What a stored reference points at in remote storage."""

    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class ExternalReference:
    """A pointer from a record to exactly one remote binary object.

    References are exclusively owned by the record that stores them; there
    is no sharing and no reference counting.

    Attributes:
        kind: Image, video or file.
        key: Object key or video id as stored on the record.
    """

    kind: ExternalReferenceKind
    key: str


@dataclass(frozen=True, slots=True)
class OwnedReference:
    """An external reference together with the record that owns it.

    Attributes:
        reference: The reference to purge.
        owner_kind: Entity kind of the owning record.
        owner_id: Identifier of the owning record.
    """

    reference: ExternalReference
    owner_kind: EntityKind
    owner_id: str


class DeletePolicy(StrEnum):
    """What happens to child rows when their parent is deleted."""

    CASCADE = "cascade"
    SET_NULL = "set_null"
    RESTRICT = "restrict"


@dataclass(frozen=True, slots=True)
class DependencyEdge:
    """A foreign key from ``child.fk_column`` to ``parent.id``.

    Attributes:
        parent: Kind whose rows are referenced.
        child: Kind holding the foreign key.
        fk_column: Column on ``child`` pointing at ``parent``.
        policy: Cascade, set-null or restrict.
    """

    parent: EntityKind
    child: EntityKind
    fk_column: str
    policy: DeletePolicy = DeletePolicy.CASCADE


@dataclass(frozen=True, slots=True)
class ReferenceSlot:
    """A column of an entity kind that stores an external reference key."""

    owner: EntityKind
    column: str
    kind: ExternalReferenceKind


class DeleteStatus(StrEnum):
    """Normalized outcome of one remote delete call."""

    OK = "ok"
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Result of a single storage or video-service delete.

    ``NOT_FOUND`` counts as success: an object that is already gone is
    exactly what a deletion wants.

    Attributes:
        status: Normalized status.
        detail: Provider message for error statuses.
    """

    status: DeleteStatus
    detail: str | None = None

    @classmethod
    def ok(cls) -> DeleteResult:
        return cls(DeleteStatus.OK)

    @classmethod
    def not_found(cls) -> DeleteResult:
        return cls(DeleteStatus.NOT_FOUND)

    @classmethod
    def transient(cls, detail: str) -> DeleteResult:
        return cls(DeleteStatus.TRANSIENT_ERROR, detail)

    @classmethod
    def permanent(cls, detail: str) -> DeleteResult:
        return cls(DeleteStatus.PERMANENT_ERROR, detail)

    @property
    def succeeded(self) -> bool:
        """True for OK and NOT_FOUND."""
        return self.status in (DeleteStatus.OK, DeleteStatus.NOT_FOUND)


@dataclass(frozen=True, slots=True)
class ExternalDeleteFailure:
    """A reference whose deletion attempt failed during a cascade.

    Collected into the outcome so a later sweep or manual retry can target
    exactly these keys.

    Attributes:
        owned: The reference and its (now deleted) owner.
        status: TRANSIENT_ERROR or PERMANENT_ERROR.
        detail: Provider or timeout message.
    """

    owned: OwnedReference
    status: DeleteStatus
    detail: str | None = None

    @property
    def reference(self) -> ExternalReference:
        return self.owned.reference


@dataclass(frozen=True, slots=True)
class StoredObject:
    """An object physically present in a storage namespace.

    Attributes:
        key: Namespace-relative object key (or video id).
        last_modified: Upload/modification time, None when the backend
            does not report one.
    """

    key: str
    last_modified: datetime | None = None
