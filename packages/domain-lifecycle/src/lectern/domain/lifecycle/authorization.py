"""Role-based deletion authorization.

Role and permission tables are passed in at construction; nothing is read
from process-wide caches, so a policy instance behaves the same in tests
and in production.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from lectern.foundation.domain.deletion_value_objects import EntityKind
from lectern.foundation.domain.exceptions import AuthorizationError
from lectern.foundation.domain.principal import Principal, PrincipalType

logger = logging.getLogger(__name__)

COURSES_DELETE = "courses_delete"
USERS_DELETE = "users_delete"
LIVE_LESSONS_DELETE = "live_lessons_delete"
PAGES_DELETE = "pages_delete"
CATEGORIES_DELETE = "categories_delete"

DEFAULT_KIND_PERMISSIONS: Mapping[EntityKind, str] = MappingProxyType(
    {
        EntityKind.USER: USERS_DELETE,
        EntityKind.COURSE: COURSES_DELETE,
        EntityKind.CHAPTER: COURSES_DELETE,
        EntityKind.LESSON: COURSES_DELETE,
        EntityKind.ASSIGNMENT: COURSES_DELETE,
        EntityKind.ASSIGNMENT_SUBMISSION: COURSES_DELETE,
        EntityKind.RESOURCE: COURSES_DELETE,
        EntityKind.CATEGORY: CATEGORIES_DELETE,
        EntityKind.LIVE_LESSON: LIVE_LESSONS_DELETE,
        EntityKind.PAGE: PAGES_DELETE,
    }
)

DEFAULT_ROLE_PERMISSIONS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "ADMIN": frozenset(
            {
                COURSES_DELETE,
                USERS_DELETE,
                LIVE_LESSONS_DELETE,
                PAGES_DELETE,
                CATEGORIES_DELETE,
            }
        ),
        "MANAGER": frozenset(
            {COURSES_DELETE, LIVE_LESSONS_DELETE, PAGES_DELETE, CATEGORIES_DELETE}
        ),
    }
)


class RolePermissionPolicy:
    """Grants deletion when any of the principal's roles holds the permission.

    SYSTEM principals (scheduled jobs) are always allowed. A user may never
    delete their own account through the cascade.

    Args:
        role_permissions: Role name to granted permissions.
        kind_permissions: Entity kind to required permission.
    """

    def __init__(
        self,
        role_permissions: Mapping[str, frozenset[str]] = DEFAULT_ROLE_PERMISSIONS,
        kind_permissions: Mapping[EntityKind, str] = DEFAULT_KIND_PERMISSIONS,
    ) -> None:
        self._role_permissions = {role.upper(): perms for role, perms in role_permissions.items()}
        self._kind_permissions = dict(kind_permissions)

    def permissions_for(self, principal: Principal) -> frozenset[str]:
        granted: set[str] = set()
        for role in principal.roles:
            granted |= self._role_permissions.get(role.upper(), frozenset())
        return frozenset(granted)

    def authorize_deletion(self, principal: Principal, kind: EntityKind, entity_id: str) -> None:
        """Raise AuthorizationError unless ``principal`` may delete the entity."""
        if principal.principal_type == PrincipalType.SYSTEM:
            return
        if kind == EntityKind.USER and entity_id == principal.user_id:
            raise AuthorizationError(
                "You cannot delete your own account",
                context={"user_id": principal.user_id},
            )
        required = self._kind_permissions.get(kind)
        if required is None or required not in self.permissions_for(principal):
            logger.info(
                "deletion_denied",
                extra={
                    "user_id": principal.user_id,
                    "kind": str(kind),
                    "entity_id": entity_id,
                    "required_permission": required,
                },
            )
            raise AuthorizationError(
                f"Missing permission: {required or 'none defined for ' + str(kind)}",
                context={"kind": str(kind), "required_permission": required},
            )
