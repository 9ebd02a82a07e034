"""Shared fixtures for domain-lifecycle tests.

The dependency graph is the real course-platform schema graph, so plan
order in these tests is the order production uses.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from typing import Any

import pytest

from lectern.domain.lifecycle.cascade_executor import CascadeExecutor
from lectern.domain.lifecycle.deletion_service import EntityDeletionService
from lectern.domain.lifecycle.dependency_graph import DependencyGraph
from lectern.domain.lifecycle.graph_reader import EntityGraphReader
from lectern.domain.lifecycle.locks import InProcessCascadeLock
from lectern.domain.lifecycle.planner import DeletionPlanner
from lectern.foundation.domain.deletion_value_objects import (
    DeleteResult,
    EntityKind,
    ExternalReference,
    ExternalReferenceKind,
)
from lectern.foundation.domain.principal import Principal
from lectern.infra.persistence.dependency_graph import build_dependency_graph
from lectern.infra.persistence.memory_store import InMemoryRecordStore

LESSON_VIDEO_ID = "0b6a7d1e-3c2f-4f1a-9d8e-5a4b3c2d1e0f"


class FakeStorageGateway:
    """Records every delete and answers from a per-key table.

    Attributes:
        calls: References in the order their delete was issued.
        results: Key to result; keys not listed succeed.
        delays: Key to seconds slept before answering.
        errors: Key to exception raised instead of answering.
        on_delete: Called with each reference before answering.
    """

    def __init__(self) -> None:
        self.calls: list[ExternalReference] = []
        self.results: dict[str, DeleteResult] = {}
        self.delays: dict[str, float] = {}
        self.errors: dict[str, Exception] = {}
        self.default_delay = 0.0
        self.on_delete: Callable[[ExternalReference], None] | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def keys(self) -> list[str]:
        return [reference.key for reference in self.calls]

    async def delete_reference(self, reference: ExternalReference) -> DeleteResult:
        self.calls.append(reference)
        if self.on_delete is not None:
            self.on_delete(reference)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(reference.key, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
            error = self.errors.get(reference.key)
            if error is not None:
                raise error
            return self.results.get(reference.key, DeleteResult.ok())
        finally:
            self.in_flight -= 1

    async def delete_object(self, key: str | None) -> DeleteResult:
        reference = ExternalReference(kind=ExternalReferenceKind.FILE, key=key or "")
        return await self.delete_reference(reference)

    async def delete_video(self, video_id: str | None) -> DeleteResult:
        reference = ExternalReference(kind=ExternalReferenceKind.VIDEO, key=video_id or "")
        return await self.delete_reference(reference)


@pytest.fixture()
def graph() -> DependencyGraph:
    return build_dependency_graph()


@pytest.fixture()
def planner(graph: DependencyGraph) -> DeletionPlanner:
    return DeletionPlanner(graph)


@pytest.fixture()
def store(graph: DependencyGraph) -> InMemoryRecordStore:
    return InMemoryRecordStore(graph)


@pytest.fixture()
def gateway() -> FakeStorageGateway:
    return FakeStorageGateway()


@pytest.fixture()
def reader(planner: DeletionPlanner, store: InMemoryRecordStore) -> EntityGraphReader:
    return EntityGraphReader(planner, store)


@pytest.fixture()
def executor(
    reader: EntityGraphReader,
    store: InMemoryRecordStore,
    gateway: FakeStorageGateway,
) -> CascadeExecutor:
    return CascadeExecutor(reader, store, gateway, external_timeout=1.0)


@pytest.fixture()
def lock() -> InProcessCascadeLock:
    return InProcessCascadeLock()


@pytest.fixture()
def service(
    planner: DeletionPlanner,
    reader: EntityGraphReader,
    executor: CascadeExecutor,
    lock: InProcessCascadeLock,
) -> EntityDeletionService:
    return EntityDeletionService(planner, reader, executor, lock)


@pytest.fixture()
def admin() -> Principal:
    return Principal(user_id="admin-1", roles=("ADMIN",))


def add_user(store: InMemoryRecordStore, user_id: str, **extra: Any) -> None:
    store.insert(
        EntityKind.USER,
        {"id": user_id, "email": f"{user_id}@example.com", "role": "STUDENT", **extra},
    )


def seed_course(
    store: InMemoryRecordStore,
    *,
    course_id: str = "c1",
    owner_id: str = "u1",
    students: int = 3,
) -> None:
    """Two chapters of three lessons each, plus enrollments.

    References: the course thumbnail, a video and a thumbnail on the first
    lesson, a thumbnail on the next four lessons and nothing on the last
    one. Seven external objects in total.
    """
    video_id = LESSON_VIDEO_ID
    if course_id != "c1":
        video_id = str(uuid.uuid5(uuid.NAMESPACE_URL, course_id))
    if not store.exists(EntityKind.USER, owner_id):
        add_user(store, owner_id, role="ADMIN")
    store.insert(
        EntityKind.COURSE,
        {
            "id": course_id,
            "title": "Course",
            "user_id": owner_id,
            "category_id": None,
            "file_key": f"course/{course_id}/thumbnail.png",
        },
    )
    lesson_number = 0
    for chapter_number in (1, 2):
        chapter_id = f"{course_id}-ch{chapter_number}"
        store.insert(
            EntityKind.CHAPTER,
            {"id": chapter_id, "title": f"Chapter {chapter_number}", "course_id": course_id},
        )
        for _ in range(3):
            lesson_number += 1
            lesson_id = f"{course_id}-l{lesson_number}"
            row: dict[str, Any] = {
                "id": lesson_id,
                "title": f"Lesson {lesson_number}",
                "chapter_id": chapter_id,
                "video_key": None,
                "thumbnail_key": None,
            }
            if lesson_number == 1:
                row["video_key"] = video_id
            if lesson_number <= 5:
                row["thumbnail_key"] = f"lessons/{lesson_id}/thumbnail.jpg"
            store.insert(EntityKind.LESSON, row)
    for number in range(1, students + 1):
        student_id = f"{course_id}-s{number}"
        add_user(store, student_id)
        store.insert(
            EntityKind.ENROLLMENT,
            {"id": f"{course_id}-e{number}", "course_id": course_id, "user_id": student_id},
        )


@pytest.fixture()
def course_seeder(store: InMemoryRecordStore) -> Callable[..., str]:
    """Seeds a course (see ``seed_course``) and returns its id."""

    def seed(course_id: str = "c1", owner_id: str = "u1", students: int = 3) -> str:
        seed_course(store, course_id=course_id, owner_id=owner_id, students=students)
        return course_id

    return seed


@pytest.fixture()
def user_adder(store: InMemoryRecordStore) -> Callable[..., str]:
    def add(user_id: str, **extra: Any) -> str:
        add_user(store, user_id, **extra)
        return user_id

    return add
