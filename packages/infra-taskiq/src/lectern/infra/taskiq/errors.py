"""TaskIQ error hierarchy.

Subtypes carry a ``transient`` flag so retry middleware and dead-letter
handling can tell recoverable failures from permanent ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lectern.domain.lifecycle.sweeper import SweepResult


class TaskIQError(Exception):
    """Base exception for all TaskIQ infrastructure errors."""

    #: Whether this error type is considered transient (retryable).
    transient: bool = False


class TaskIQBrokerError(TaskIQError):
    """Raised when broker startup or shutdown fails."""

    transient: bool = True


class SweepTaskError(TaskIQError):
    """Raised when one or more namespaces could not be swept.

    Every namespace is still attempted. The completed results and the
    failed namespace labels are kept on the error so the task result
    shows what did get cleaned.

    Attributes:
        results: Results of the namespaces that swept successfully.
        failed_namespaces: Namespace label mapped to the error message.
    """

    transient: bool = True

    def __init__(
        self,
        results: list[SweepResult],
        failed_namespaces: dict[str, str],
    ) -> None:
        self.results = results
        self.failed_namespaces = failed_namespaces
        names = ", ".join(sorted(failed_namespaces))
        super().__init__(f"Orphan sweep failed for: {names}")
