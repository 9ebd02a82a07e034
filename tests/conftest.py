"""Shared fixtures for integration tests.

The course platform app runs on an in-memory record store, an in-process
lock and a recording storage gateway, so no external service is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from examples.course_platform.app import create_course_platform_app
from examples.course_platform.wiring import build_deletion_service
from fastapi.testclient import TestClient

from lectern.domain.lifecycle.locks import InProcessCascadeLock
from lectern.domain.lifecycle.settings import LifecycleSettings
from lectern.foundation.domain.deletion_value_objects import DeleteResult, EntityKind
from lectern.infra.persistence.dependency_graph import build_dependency_graph
from lectern.infra.persistence.memory_store import InMemoryRecordStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fastapi import FastAPI

    from lectern.domain.lifecycle.deletion_service import EntityDeletionService
    from lectern.foundation.domain.deletion_value_objects import ExternalReference

K = EntityKind


class RecordingGateway:
    """Storage gateway that records keys and answers from ``results``."""

    def __init__(self) -> None:
        self.keys: list[str] = []
        self.results: dict[str, DeleteResult] = {}

    async def delete_reference(self, reference: ExternalReference) -> DeleteResult:
        self.keys.append(reference.key)
        return self.results.get(reference.key, DeleteResult.ok())

    async def delete_object(self, key: str | None) -> DeleteResult:
        return DeleteResult.ok()

    async def delete_video(self, video_id: str | None) -> DeleteResult:
        return DeleteResult.ok()


@pytest.fixture()
def store() -> InMemoryRecordStore:
    """Platform rows: admin, author u1 with course c1, student s1 enrolled."""
    store = InMemoryRecordStore(build_dependency_graph())
    store.insert(K.USER, {"id": "admin-1", "email": "admin@example.com", "role": "ADMIN"})
    store.insert(K.USER, {"id": "u1", "email": "u1@example.com", "image_key": "/images/u1.png"})
    store.insert(K.USER, {"id": "s1", "email": "s1@example.com"})
    store.insert(K.CATEGORY, {"id": "cat1", "name": "Maths"})
    store.insert(
        K.COURSE,
        {
            "id": "c1",
            "title": "Algebra",
            "user_id": "u1",
            "category_id": "cat1",
            "file_key": "course/c1/cover.png",
        },
    )
    store.insert(K.CHAPTER, {"id": "ch1", "title": "Intro", "course_id": "c1"})
    store.insert(
        K.LESSON,
        {
            "id": "l1",
            "title": "One",
            "chapter_id": "ch1",
            "video_key": "0b6a7d1e-3c2f-4f1a-9d8e-5a4b3c2d1e0f",
            "thumbnail_key": "lessons/l1/thumb.jpg",
        },
    )
    store.insert(K.ENROLLMENT, {"id": "e1", "course_id": "c1", "user_id": "s1"})
    store.insert(K.SESSION, {"id": "sess1", "user_id": "u1"})
    return store


@pytest.fixture()
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture()
def lock() -> InProcessCascadeLock:
    return InProcessCascadeLock()


@pytest.fixture()
def deletion_service(
    store: InMemoryRecordStore,
    gateway: RecordingGateway,
    lock: InProcessCascadeLock,
) -> EntityDeletionService:
    settings = LifecycleSettings(_env_file=None, external_delete_timeout=1.0)
    return build_deletion_service(store, gateway, lock, settings=settings)


@pytest.fixture()
def course_platform_app(deletion_service: EntityDeletionService) -> FastAPI:
    return create_course_platform_app(deletion_service=deletion_service)


@pytest.fixture()
def client(course_platform_app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the course platform app (lifespan hooks executed)."""
    with TestClient(course_platform_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-User-ID": "admin-1", "X-User-Roles": "admin"}
