"""Authentication / authorization helpers.

Auth is stateless and intentionally small:

- Two identity tables (admins, users), each with email + password hash.
- JWT access tokens carrying {sub, email, role}, sent as
  `Authorization: Bearer <token>`.
- Gates attached to procedures (public / authed / admin), checked once by the
  dispatcher before input validation.
"""

from .deps import Gate, current_user, enforce_gate
from .security import create_access_token, hash_password, verify_access_token, verify_password

__all__ = [
    "Gate",
    "current_user",
    "enforce_gate",
    "create_access_token",
    "hash_password",
    "verify_access_token",
    "verify_password",
]
