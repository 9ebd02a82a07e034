"""Aggregated health check endpoint for the database and Redis."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lectern.infra.persistence.database import get_database_manager
from lectern.infra.persistence.redis_client import get_redis_factory

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


async def _check_database() -> dict[str, str]:
    try:
        engine = get_database_manager().get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("health_check_failed", extra={"check": "database", "error": str(exc)})
        return {"status": "error", "detail": type(exc).__name__}
    return {"status": "ok"}


async def _check_redis() -> dict[str, str]:
    try:
        client = await get_redis_factory().get_client()
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("health_check_failed", extra={"check": "redis", "error": str(exc)})
        return {"status": "error", "detail": type(exc).__name__}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> Any:
    """200 when every subsystem answers, 503 when any is degraded."""
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
        status_code=200 if all_ok else 503,
    )
