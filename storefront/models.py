from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a verified access token.

    Stateless: built from token claims only, never looked up in the DB.
    """

    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
