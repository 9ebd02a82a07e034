"""Port interface for deleting externally stored binary objects.

Implementations translate a stored reference into exactly one
provider-specific delete call and normalize every provider outcome into a
``DeleteResult``. A gateway never raises for "not found" and never retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from lectern.foundation.domain.deletion_value_objects import (
        DeleteResult,
        ExternalReference,
    )


@runtime_checkable
class StorageGatewayPort(Protocol):
    """Port for object-storage and video-service deletes.

    Empty or None keys short-circuit to ``DeleteResult.ok()`` with no
    remote call. The gateway alone decides which backend a key belongs to,
    by pattern-matching the key.
    """

    async def delete_object(self, key: str | None) -> DeleteResult:
        """Delete a stored object (image or file) by key."""
        ...

    async def delete_video(self, video_id: str | None) -> DeleteResult:
        """Delete a video from the streaming service by id."""
        ...

    async def delete_reference(self, reference: ExternalReference) -> DeleteResult:
        """Delete whatever ``reference`` resolves to, routing by key pattern."""
        ...
