"""Principal value object representing an authenticated identity.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Produced by whatever authentication layer fronts the application; the
deletion core only reads it at the authorization boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PrincipalType(StrEnum):
    """Type of authenticated principal."""

    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated entity performing a request.

    Attributes:
        user_id: Identifier of the acting user (matches ``users.id``).
        roles: Role strings (e.g., "ADMIN", "MANAGER"). Empty tuple if absent.
        email: Email address. None if absent.
        principal_type: USER or SYSTEM. Defaults to USER.
    """

    user_id: str
    roles: tuple[str, ...] = ()
    email: str | None = None
    principal_type: PrincipalType = PrincipalType.USER
