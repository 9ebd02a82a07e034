"""Port interface for the deletion authorization boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from lectern.foundation.domain.deletion_value_objects import EntityKind
    from lectern.foundation.domain.principal import Principal


@runtime_checkable
class AuthorizationPolicyPort(Protocol):
    """Decides whether a principal may delete a given entity.

    Checked once at the ``delete_entity`` boundary. The cascade executor
    itself is authorization-agnostic.
    """

    def authorize_deletion(
        self,
        principal: Principal,
        kind: EntityKind,
        entity_id: str,
    ) -> None:
        """Return normally when allowed.

        Raises:
            AuthorizationError: The principal may not delete this entity.
        """
        ...
