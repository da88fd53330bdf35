from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from storefront.auth.security import verify_access_token
from storefront.config import Config
from storefront.mail.transport import Mailer
from storefront.models import Identity


_BEARER_PREFIX = "Bearer "


@dataclass
class Context:
    """Per-call state handed to every procedure.

    `user` is None for anonymous callers. Dependencies are passed in
    explicitly so handlers never reach for module-level clients.
    """

    cfg: Config
    conn: Any
    mailer: Mailer
    user: Optional[Identity] = None


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None


def create_context(
    *,
    cfg: Config,
    conn: Any,
    mailer: Mailer,
    authorization: str | None,
) -> Context:
    """Build the call context from the Authorization header.

    Purely local: a missing, malformed or invalid token gives an anonymous
    context rather than an error. Gates decide whether anonymous is allowed.
    """
    user: Optional[Identity] = None
    token = bearer_token(authorization)
    if token:
        user = verify_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)
    return Context(cfg=cfg, conn=conn, mailer=mailer, user=user)
