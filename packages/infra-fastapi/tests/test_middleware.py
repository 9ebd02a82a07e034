"""Unit tests for lectern.infra.fastapi.middleware."""

from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lectern.foundation.application.context import get_current_context, request_context
from lectern.infra.fastapi.middleware.request_context import RequestContextMiddleware
from lectern.infra.fastapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    _is_valid_uuid,
    get_request_id,
)


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/ctx")
    async def ctx() -> dict[str, str]:
        context = get_current_context()
        return {
            "request_id": get_request_id(),
            "user_id": context.user_id,
            "correlation_id": context.correlation_id,
        }

    return app


class TestIsValidUUID:
    @pytest.mark.unit
    def test_valid_and_invalid(self) -> None:
        assert _is_valid_uuid(str(uuid.uuid4())) is True
        assert _is_valid_uuid("not-a-uuid") is False
        assert _is_valid_uuid("") is False
        assert _is_valid_uuid(None) is False


class TestRequestIdMiddleware:
    @pytest.mark.unit
    def test_preserves_valid_client_id(self) -> None:
        rid = str(uuid.uuid4())
        response = TestClient(_make_app()).get("/ctx", headers={REQUEST_ID_HEADER: rid})
        assert response.headers[REQUEST_ID_HEADER] == rid
        assert response.json()["request_id"] == rid

    @pytest.mark.unit
    def test_replaces_invalid_client_id(self) -> None:
        response = TestClient(_make_app()).get("/ctx", headers={REQUEST_ID_HEADER: "nope"})
        generated = response.headers[REQUEST_ID_HEADER]
        assert generated != "nope"
        assert _is_valid_uuid(generated)

    @pytest.mark.unit
    def test_context_is_reset_after_request(self) -> None:
        TestClient(_make_app()).get("/ctx")
        assert get_request_id() == ""


class TestRequestContextMiddleware:
    @pytest.mark.unit
    def test_user_and_correlation_ids_are_set(self) -> None:
        rid = str(uuid.uuid4())
        response = TestClient(_make_app()).get(
            "/ctx", headers={REQUEST_ID_HEADER: rid, "X-User-ID": "u-42"}
        )
        body = response.json()
        assert body["user_id"] == "u-42"
        assert body["correlation_id"] == rid

    @pytest.mark.unit
    def test_context_cleared_after_request(self) -> None:
        TestClient(_make_app()).get("/ctx", headers={"X-User-ID": "u-1"})
        assert request_context.get() is None
