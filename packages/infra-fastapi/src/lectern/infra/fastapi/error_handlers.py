"""RFC 7807 Problem Details exception handlers for FastAPI.

Translates domain exceptions, including the deletion failures raised at
the ``delete_entity`` boundary, into ``application/problem+json``
responses.

Usage:
    from lectern.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lectern.foundation.application.context import get_optional_context
from lectern.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PlanInvariantViolationError,
    RelationalDeleteError,
    ValidationError,
)
from lectern.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

#: Seconds a client should wait before retrying a failed cascade.
RELATIONAL_RETRY_AFTER_SECONDS = 30


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response model.

    Extension fields:
    - error_code: Machine-readable error code for client handling
    - context: Structured debugging information
    - correlation_id: Request correlation ID (5xx errors only)
    """

    type: str = Field(
        ...,
        description="URI reference identifying problem type",
        examples=["/errors/not-found", "/errors/deletion-failed"],
    )
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., ge=400, le=599, description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str | None = Field(
        default=None,
        description="URI reference to specific occurrence (request path)",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code",
        examples=["RESOURCE_NOT_FOUND", "DELETION_RESTRICTED"],
    )
    context: dict[str, Any] | None = Field(
        default=None,
        description="Structured debugging information",
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for support requests",
    )


_SENSITIVE_KEYS = frozenset(
    {"password", "secret", "token", "api_key", "apikey", "access_key", "accesskey", "credential"}
)

_SENSITIVE_PATTERNS = [
    (
        re.compile(r"postgresql(\+\w+)?://[^@]*@[^/\s]*"),
        "postgresql://[REDACTED]@[REDACTED]",
    ),
    (
        re.compile(r"password\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "password=[REDACTED]",
    ),
    (
        re.compile(r"access[_-]?key\s*[=:]\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "access_key=[REDACTED]",
    ),
    (
        re.compile(r"api[_-]?key\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE),
        "api_key=[REDACTED]",
    ),
]


def _create_problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _get_correlation_id() -> str:
    """Correlation id of the current request, or "unknown" outside one."""
    ctx = get_optional_context()
    if ctx is not None and ctx.correlation_id:
        return ctx.correlation_id
    return get_request_id() or "unknown"


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Make exception context JSON-safe and drop sensitive keys."""
    if context is None:
        return None
    sanitized = {
        str(key): _sanitize_value(value)
        for key, value in context.items()
        if str(key).lower() not in _SENSITIVE_KEYS
    }
    return sanitized or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return _redact_sensitive_strings(value)
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _redact_sensitive_strings(text: str) -> str:
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _problem_for(
    request: Request,
    exc: DomainError,
    *,
    type_: str,
    title: str,
    status: int,
    detail: str | None = None,
) -> ProblemDetail:
    return ProblemDetail(
        type=type_,
        title=title,
        status=status,
        detail=detail if detail is not None else str(exc.message),
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Translate NotFoundError to 404."""
    problem = _problem_for(
        request, exc, type_="/errors/not-found", title="Resource Not Found", status=404
    )
    return _create_problem_response(problem)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Translate ValidationError (unknown or non-root kind) to 422."""
    problem = _problem_for(
        request, exc, type_="/errors/validation-error", title="Validation Error", status=422
    )
    return _create_problem_response(problem)


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Translate ConflictError to 409.

    Covers DeletionRestrictedError (restricting children exist) and
    CascadeInProgressError (an overlapping cascade holds the lock). The
    problem ``type`` is derived from the error code so clients can tell
    them apart without parsing the detail.
    """
    problem = _problem_for(
        request,
        exc,
        type_=f"/errors/{exc.error_code.lower().replace('_', '-')}",
        title="Conflict",
        status=409,
    )
    return _create_problem_response(problem)


async def relational_delete_handler(
    request: Request,
    exc: RelationalDeleteError,
) -> JSONResponse:
    """Translate a failed cascade to 503 with Retry-After.

    Every cascade step is idempotent, so the client is told plainly that
    repeating the request is safe. Partial counts stay in ``context``.
    """
    correlation_id = _get_correlation_id()
    logger.error(
        "cascade_failed_response",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "kind": exc.kind,
            "reason": exc.reason,
        },
    )
    problem = _problem_for(
        request,
        exc,
        type_="/errors/deletion-failed",
        title="Deletion Incomplete",
        status=503,
        detail="Deletion did not complete. The operation can be safely retried.",
    )
    problem.correlation_id = correlation_id
    response = _create_problem_response(problem)
    response.headers["Retry-After"] = str(RELATIONAL_RETRY_AFTER_SECONDS)
    return response


async def authentication_error_handler(
    request: Request,
    exc: AuthenticationError,
) -> JSONResponse:
    """Translate AuthenticationError to 401 with a WWW-Authenticate challenge."""
    problem = ProblemDetail(
        type=f"/errors/{exc.error_code.lower().replace('_', '-')}",
        title="Unauthorized",
        status=401,
        detail=exc.message,
        instance=str(request.url.path),
        error_code=exc.error_code,
    )
    response = _create_problem_response(problem)
    response.headers["WWW-Authenticate"] = f'Bearer realm="API", error="{exc.error_code.lower()}"'
    return response


async def authorization_error_handler(
    request: Request,
    exc: AuthorizationError,
) -> JSONResponse:
    """Translate AuthorizationError to 403 Forbidden."""
    problem = _problem_for(request, exc, type_="/errors/forbidden", title="Forbidden", status=403)
    return _create_problem_response(problem)


async def plan_invariant_handler(
    request: Request,
    exc: PlanInvariantViolationError,
) -> JSONResponse:
    """Translate a dependency cycle to 500.

    Raised only when the schema itself is broken, so it is logged at error
    level like any other internal error.
    """
    correlation_id = _get_correlation_id()
    logger.error(
        "plan_invariant_violation",
        extra={"correlation_id": correlation_id, "root_kind": exc.root_kind, "cycle": exc.cycle},
    )
    problem = _problem_for(
        request,
        exc,
        type_="/errors/plan-invariant-violation",
        title="Internal Server Error",
        status=500,
    )
    problem.correlation_id = correlation_id
    return _create_problem_response(problem)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Fallback for domain errors without a more specific handler: 400."""
    problem = _problem_for(
        request, exc, type_="/errors/domain-error", title="Bad Request", status=400
    )
    return _create_problem_response(problem)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Translate FastAPI request validation errors to 422."""
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    problem = ProblemDetail(
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        error_code="REQUEST_VALIDATION_ERROR",
        context={"errors": errors},
    )
    return _create_problem_response(problem)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the full exception, return a sanitized 500.

    In debug mode the exception type and message are included.
    """
    correlation_id = _get_correlation_id()
    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    if getattr(request.app, "debug", False):
        detail = f"{type(exc).__name__}: {exc}"
        context: dict[str, Any] | None = {"exception_type": type(exc).__name__}
    else:
        detail = "An internal error occurred. Please contact support with the correlation ID."
        context = None

    problem = ProblemDetail(
        type="/errors/internal-error",
        title="Internal Server Error",
        status=500,
        detail=detail,
        instance=str(request.url.path),
        error_code="INTERNAL_ERROR",
        context=context,
        correlation_id=correlation_id,
    )
    return _create_problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on a FastAPI application.

    Starlette resolves handlers by walking the exception's MRO, so
    subclasses (DeletionRestrictedError, CascadeInProgressError) reach
    the ConflictError handler and anything else under DomainError falls
    back to 400:

    1. AuthenticationError -> 401
    2. AuthorizationError -> 403
    3. NotFoundError -> 404
    4. ValidationError -> 422
    5. ConflictError -> 409
    6. RelationalDeleteError -> 503 + Retry-After
    7. PlanInvariantViolationError -> 500
    8. DomainError -> 400
    9. RequestValidationError -> 422
    10. Exception -> 500
    """
    handlers: list[tuple[type[Exception], Any]] = [
        (AuthenticationError, authentication_error_handler),
        (AuthorizationError, authorization_error_handler),
        (NotFoundError, not_found_handler),
        (ValidationError, validation_error_handler),
        (ConflictError, conflict_error_handler),
        (RelationalDeleteError, relational_delete_handler),
        (PlanInvariantViolationError, plan_invariant_handler),
        (DomainError, domain_error_handler),
        (RequestValidationError, request_validation_handler),
        (Exception, unhandled_exception_handler),
    ]
    for exception_class, handler in handlers:
        app.add_exception_handler(exception_class, handler)
