from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

from storefront.models import Identity
from storefront.rpc.errors import Forbidden, Unauthorized

if TYPE_CHECKING:
    from storefront.rpc.context import Context


class Gate(str, Enum):
    """Capability a procedure requires before its body runs."""

    PUBLIC = "public"
    AUTHED = "authed"
    ADMIN = "admin"


def enforce_gate(ctx: Context, gate: Gate) -> Optional[Identity]:
    """Reject the call unless `ctx` satisfies `gate`.

    Returns the caller identity unchanged (None for public procedures called
    anonymously).
    """
    if gate is Gate.PUBLIC:
        return ctx.user

    if ctx.user is None:
        raise Unauthorized("Login required")

    if gate is Gate.ADMIN and not ctx.user.is_admin:
        raise Forbidden("Admin privileges required")

    return ctx.user


def current_user(ctx: Context) -> Identity:
    """Identity of a call that already passed an AUTHED or ADMIN gate."""
    if ctx.user is None:
        raise Unauthorized("Login required")
    return ctx.user
