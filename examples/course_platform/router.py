"""Deletion REST API.

``DELETE /entities/{kind}/{entity_id}`` deletes a root entity with its
whole subgraph. ``GET /entities/{kind}/{entity_id}/preview`` reports what
that would remove. The acting principal is read from ``X-User-ID`` and
``X-User-Roles`` (comma separated), set by the gateway in front of the app.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request

from lectern.domain.lifecycle.deletion_service import EntityDeletionService
from lectern.foundation.domain.principal import Principal

router = APIRouter(prefix="/entities", tags=["entities"])


def get_deletion_service(request: Request) -> EntityDeletionService:
    service: EntityDeletionService = request.app.state.deletion_service
    return service


def get_principal(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_roles: Annotated[str | None, Header()] = None,
) -> Principal | None:
    """Principal from trusted gateway headers, or None when unauthenticated."""
    if not x_user_id:
        return None
    roles = tuple(role.strip().upper() for role in (x_user_roles or "").split(",") if role.strip())
    return Principal(user_id=x_user_id, roles=roles)


Service = Annotated[EntityDeletionService, Depends(get_deletion_service)]
CurrentPrincipal = Annotated[Principal | None, Depends(get_principal)]


@router.delete("/{kind}/{entity_id}")
async def delete_entity(
    kind: str,
    entity_id: str,
    service: Service,
    principal: CurrentPrincipal,
) -> dict[str, Any]:
    """Delete the entity and everything that depends on it.

    A missing entity answers 200 with status ``not_found``. An interrupted
    cascade answers 503 with ``Retry-After``; repeating the call is safe.
    """
    outcome = await service.delete_entity(kind, entity_id, principal)
    outcome.raise_for_failure()
    return outcome.to_dict()


@router.get("/{kind}/{entity_id}/preview")
async def preview_entity_deletion(
    kind: str,
    entity_id: str,
    service: Service,
) -> dict[str, Any]:
    preview = await service.preview(kind, entity_id)
    return preview.to_dict()
