"""Shared HTTP plumbing for the Bunny backends."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx

from lectern.foundation.domain.deletion_value_objects import DeleteResult

# 4xx statuses worth retrying later.
TRANSIENT_STATUSES = frozenset({408, 425, 429})


def result_for_response(response: httpx.Response) -> DeleteResult:
    """Normalize a provider response into a DeleteResult."""
    status = response.status_code
    if response.is_success:
        return DeleteResult.ok()
    if status == 404:
        return DeleteResult.not_found()
    detail = f"HTTP {status}: {response.text[:200]}"
    if status in TRANSIENT_STATUSES or status >= 500:
        return DeleteResult.transient(detail)
    return DeleteResult.permanent(detail)


def result_for_error(exc: httpx.HTTPError) -> DeleteResult:
    """Normalize a transport-level failure into a DeleteResult."""
    if isinstance(exc, httpx.TransportError):
        return DeleteResult.transient(f"{type(exc).__name__}: {exc}")
    return DeleteResult.permanent(f"{type(exc).__name__}: {exc}")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a provider ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class HttpBackend:
    """Owns a shared or lazily created ``httpx.AsyncClient``.

    Args:
        timeout: Per-request timeout in seconds.
        client: Optional shared client. A client passed in is never closed
            by :meth:`aclose`.
    """

    def __init__(self, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the internal client if this backend created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
