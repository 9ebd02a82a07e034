"""Pieces an infrastructure package hands to the application factory.

Each package that needs startup work, a middleware or an exception handler
exposes one of these records. The FastAPI layer sorts and installs them.
Nothing here imports a web framework.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any

# Middleware bands: 0-99 outermost, 200-299 request context, 400 default.
MIDDLEWARE_PRIORITY_MIN = 0
MIDDLEWARE_PRIORITY_MAX = 499

# Startup order of the bundled lifespan hooks; shutdown runs in reverse.
LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_PERSISTENCE = 75
LIFESPAN_PRIORITY_STORAGE = 100
LIFESPAN_PRIORITY_TASKIQ = 150
LIFESPAN_PRIORITY_LIFECYCLE = 200

LifespanHook = Callable[[Any], AbstractAsyncContextManager[None]]
ExceptionHandler = Callable[[Any, Any], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """An ASGI middleware class plus where it sits in the stack.

    Attributes:
        middleware_class: Class passed to ``app.add_middleware``.
        priority: Lower values wrap the app further out. Must lie in
            ``[MIDDLEWARE_PRIORITY_MIN, MIDDLEWARE_PRIORITY_MAX]``.
        kwargs: Extra constructor arguments.
    """

    middleware_class: type[Any]
    priority: int = 400
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MIDDLEWARE_PRIORITY_MIN <= self.priority <= MIDDLEWARE_PRIORITY_MAX:
            msg = (
                f"middleware priority {self.priority} outside "
                f"[{MIDDLEWARE_PRIORITY_MIN}, {MIDDLEWARE_PRIORITY_MAX}]"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ErrorHandlerContribution:
    """Exception type and the async ``(request, exc)`` handler answering it."""

    exception_class: type[BaseException]
    handler: ExceptionHandler


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """Startup/shutdown hook taking the app and yielding once while it serves.

    Hooks with a lower ``priority`` enter first and exit last.
    """

    hook: LifespanHook
    priority: int = 500
