"""Lifespan composition for the app factory."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

    from lectern.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: Sequence[LifespanContribution],
) -> Callable[[Any], Any]:
    """Combine lifespan hooks into one FastAPI ``lifespan`` factory.

    Hooks start in ascending priority and shut down in reverse
    (stack semantics via :class:`AsyncExitStack`). If a hook fails on
    startup, the hooks already entered are shut down before the error
    propagates.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contribution in ordered:
                logger.info(
                    "lifespan_hook_entering",
                    extra={
                        "priority": contribution.priority,
                        "hook": getattr(contribution.hook, "__qualname__", repr(contribution)),
                    },
                )
                await stack.enter_async_context(contribution.hook(app))
            yield

    return lifespan
