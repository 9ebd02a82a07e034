"""Lectern Foundation Application -- request context and app contributions."""

from lectern.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_request_context,
    get_current_context,
    get_optional_context,
    set_request_context,
)
from lectern.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)

__all__ = [
    "ErrorHandlerContribution",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoRequestContextError",
    "RequestContext",
    "clear_request_context",
    "get_current_context",
    "get_optional_context",
    "set_request_context",
]
