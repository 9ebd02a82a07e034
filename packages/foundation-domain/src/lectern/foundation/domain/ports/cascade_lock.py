"""Port interface for mutual exclusion between overlapping cascades."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from contextlib import AbstractAsyncContextManager


@runtime_checkable
class CascadeLockPort(Protocol):
    """Advisory lock over a set of entity keys.

    ``hold`` acquires every key or none of them and releases them on exit.
    Keys are strings of the form ``"<kind>:<id>"``.
    """

    def hold(self, keys: Sequence[str]) -> AbstractAsyncContextManager[None]:
        """Return a context manager holding all ``keys``.

        Raises:
            CascadeInProgressError: On enter, when any key is already held
                and cannot be acquired within the configured wait.
        """
        ...
