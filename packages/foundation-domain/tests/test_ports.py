"""Tests for port protocol conformance."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest

from lectern.foundation.domain.deletion_value_objects import DeleteResult
from lectern.foundation.domain.ports import (
    AuthorizationPolicyPort,
    CascadeLockPort,
    RecordStorePort,
    StorageGatewayPort,
    StorageNamespacePort,
)


class _FakeGateway:
    async def delete_object(self, key: str | None) -> DeleteResult:
        return DeleteResult.ok()

    async def delete_video(self, video_id: str | None) -> DeleteResult:
        return DeleteResult.ok()

    async def delete_reference(self, reference: Any) -> DeleteResult:
        return DeleteResult.ok()


class _FakeNamespace:
    name = "fake"

    async def list_objects(self) -> list[Any]:
        return []

    def resolve_key(self, reference_key: str) -> str | None:
        return reference_key

    def reference_forms(self, key: str) -> tuple[str, ...]:
        return (key,)

    async def delete(self, key: str) -> DeleteResult:
        return DeleteResult.not_found()


class _FakeLock:
    @asynccontextmanager
    async def hold(self, keys: Any) -> Any:
        yield


class _AllowAll:
    def authorize_deletion(self, principal: Any, kind: Any, entity_id: str) -> None:
        return None


@pytest.mark.unit
class TestPortConformance:
    def test_gateway(self) -> None:
        assert isinstance(_FakeGateway(), StorageGatewayPort)

    def test_namespace(self) -> None:
        assert isinstance(_FakeNamespace(), StorageNamespacePort)

    def test_lock(self) -> None:
        assert isinstance(_FakeLock(), CascadeLockPort)

    def test_authorization(self) -> None:
        assert isinstance(_AllowAll(), AuthorizationPolicyPort)

    def test_non_conforming_object_rejected(self) -> None:
        assert not isinstance(_AllowAll(), RecordStorePort)
        assert not isinstance(object(), StorageGatewayPort)
