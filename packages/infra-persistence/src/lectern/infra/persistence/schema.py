"""Relational schema of the course platform, as SQLAlchemy Core tables.

The schema is the single source of truth for deletion order. Every
foreign key carries its delete policy in ``info["on_parent_delete"]``
(``cascade``, ``set_null`` or ``restrict``); columns that hold an external
storage key carry ``info["external_ref"]`` (``image``, ``video`` or
``file``). Foreign keys are declared without database-side ``ON DELETE``
actions: the cascade executor removes children explicitly so external
objects are purged alongside their rows.

Table declaration order matters. Children of the same parent are deleted
in the order their tables appear here.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, MetaData, String, Table, Text, func

metadata = MetaData()


def _id() -> Column[Any]:
    return Column("id", String(36), primary_key=True)


def _created_at() -> Column[Any]:
    return Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now())


def _fk(
    name: str,
    target: str,
    policy: str = "cascade",
    *,
    nullable: bool = False,
) -> Column[Any]:
    return Column(
        name,
        String(36),
        ForeignKey(f"{target}.id", info={"on_parent_delete": policy}),
        nullable=nullable,
        index=True,
    )


def _ref(name: str, kind: str) -> Column[Any]:
    return Column(name, Text, nullable=True, info={"external_ref": kind})


categories = Table(
    "categories",
    metadata,
    _id(),
    Column("name", String(200), nullable=False),
    _created_at(),
)

users = Table(
    "users",
    metadata,
    _id(),
    Column("email", String(320), nullable=False, unique=True),
    Column("name", String(200)),
    Column("role", String(32), nullable=False, server_default="STUDENT"),
    _ref("image_key", "image"),
    _created_at(),
)

courses = Table(
    "courses",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("user_id", "users"),
    _fk("category_id", "categories", "restrict", nullable=True),
    _ref("file_key", "image"),
    _created_at(),
)

chapters = Table(
    "chapters",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("course_id", "courses"),
    _created_at(),
)

lessons = Table(
    "lessons",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("chapter_id", "chapters"),
    _ref("video_key", "video"),
    _ref("thumbnail_key", "image"),
    _created_at(),
)

assignments = Table(
    "assignments",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("lesson_id", "lessons"),
    _created_at(),
)

assignment_submissions = Table(
    "assignment_submissions",
    metadata,
    _id(),
    _fk("assignment_id", "assignments"),
    _fk("student_id", "users"),
    _ref("file_key", "file"),
    _created_at(),
)

resources = Table(
    "resources",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("lesson_id", "lessons"),
    _ref("file_key", "file"),
    _created_at(),
)

lesson_progress = Table(
    "lesson_progress",
    metadata,
    _id(),
    _fk("lesson_id", "lessons"),
    _fk("user_id", "users"),
    _created_at(),
)

enrollments = Table(
    "enrollments",
    metadata,
    _id(),
    _fk("course_id", "courses"),
    _fk("user_id", "users"),
    _created_at(),
)

live_lessons = Table(
    "live_lessons",
    metadata,
    _id(),
    Column("title", String(300), nullable=False),
    _fk("course_id", "courses", nullable=True),
    _fk("creator_id", "users"),
    _ref("recording_url", "video"),
    _created_at(),
)

live_lesson_attendees = Table(
    "live_lesson_attendees",
    metadata,
    _id(),
    _fk("live_lesson_id", "live_lessons"),
    _fk("user_id", "users"),
    _created_at(),
)

pages = Table(
    "pages",
    metadata,
    _id(),
    Column("slug", String(200), nullable=False, unique=True),
    _fk("author_id", "users"),
    _created_at(),
)

user_settings = Table(
    "user_settings",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _created_at(),
)

security_events = Table(
    "security_events",
    metadata,
    _id(),
    Column("event_type", String(64), nullable=False),
    _fk("user_id", "users"),
    _created_at(),
)

device_logs = Table(
    "device_logs",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _created_at(),
)

device_tracking = Table(
    "device_tracking",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _created_at(),
)

payment_logs = Table(
    "payment_logs",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _fk("course_id", "courses", "set_null", nullable=True),
    Column("amount_cents", String(32)),
    _created_at(),
)

code_redemptions = Table(
    "code_redemptions",
    metadata,
    _id(),
    Column("code", String(64), nullable=False),
    _fk("user_id", "users"),
    _created_at(),
)

notifications = Table(
    "notifications",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _created_at(),
)

sessions = Table(
    "sessions",
    metadata,
    _id(),
    _fk("user_id", "users"),
    _created_at(),
)

accounts = Table(
    "accounts",
    metadata,
    _id(),
    Column("provider", String(64), nullable=False),
    _fk("user_id", "users"),
    _created_at(),
)
