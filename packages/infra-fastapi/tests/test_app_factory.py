"""Unit tests for lectern.infra.fastapi.app_factory and settings."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError

from lectern.foundation.application import ErrorHandlerContribution
from lectern.foundation.domain import NotFoundError
from lectern.infra.fastapi.app_factory import create_app
from lectern.infra.fastapi.settings import AppSettings, CORSSettings


class _TeapotError(Exception):
    pass


def _router() -> APIRouter:
    router = APIRouter()

    @router.get("/missing")
    async def missing() -> None:
        raise NotFoundError("courses", "c1")

    @router.get("/teapot")
    async def teapot() -> None:
        raise _TeapotError

    return router


class TestSettings:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = AppSettings()
        assert settings.title == "Lectern"
        assert settings.debug is False

    @pytest.mark.unit
    def test_cors_comma_separated_env(self) -> None:
        with patch.dict("os.environ", {"CORS_ALLOW_ORIGINS": "https://a.test, https://b.test"}):
            cors = CORSSettings()
        assert cors.allow_origins == ["https://a.test", "https://b.test"]

    @pytest.mark.unit
    def test_cors_credentials_with_wildcard_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            CORSSettings(allow_origins=["*"], allow_credentials=True)


class TestCreateApp:
    @pytest.mark.unit
    def test_problem_details_installed_by_default(self) -> None:
        app = create_app(AppSettings(), routers=[_router()])
        response = TestClient(app).get("/missing")
        assert response.status_code == 404
        assert response.headers["content-type"] == "application/problem+json"
        assert "x-request-id" in response.headers

    @pytest.mark.unit
    def test_extra_error_handlers_are_registered(self) -> None:
        from fastapi.responses import JSONResponse

        async def teapot_handler(request, exc) -> JSONResponse:
            return JSONResponse({"tea": True}, status_code=418)

        app = create_app(
            AppSettings(),
            routers=[_router()],
            error_handlers=[ErrorHandlerContribution(_TeapotError, teapot_handler)],
        )
        response = TestClient(app).get("/teapot")
        assert response.status_code == 418
