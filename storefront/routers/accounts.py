"""Account procedures shared by the `admin` and `user` namespaces.

Both identity kinds expose the same four procedures (register, login, me,
update); they differ only in the table they live in, the role put in the
token, and the gate protecting `me` / `update`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field

from storefront.auth.crud import (
    create_account,
    get_account_by_id,
    public_account,
    update_account,
    verify_account_credentials,
)
from storefront.auth.deps import Gate, current_user
from storefront.auth.security import create_access_token
from storefront.models import ROLE_ADMIN, Identity
from storefront.rpc.context import Context
from storefront.rpc.errors import Conflict, NotFound, Unauthorized
from storefront.rpc.procedure import Router


# Same text for unknown email and wrong password (no account enumeration).
INVALID_CREDENTIALS = "Invalid email or password"


class RegisterInput(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: Optional[str] = None


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdateInput(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


def _issue_token(ctx: Context, row: Any, kind: str) -> str:
    return create_access_token(
        secret=ctx.cfg.AUTH_JWT_SECRET,
        identity=Identity(id=str(row["id"]), email=str(row["email"]), role=kind),
        expires_minutes=int(ctx.cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )


def build_account_router(kind: str) -> Router:
    """Router for one identity kind ("admin" or "user").

    The response key matches the kind: {"admin": {...}, "token": ...}.
    """
    router = Router()
    gate = Gate.ADMIN if kind == ROLE_ADMIN else Gate.AUTHED
    not_found = "Admin not found" if kind == ROLE_ADMIN else "User not found"

    @router.mutation("register", input=RegisterInput)
    def register(ctx: Context, payload: RegisterInput) -> Dict[str, Any]:
        try:
            row = create_account(
                ctx.conn,
                kind,
                email=payload.email,
                password=payload.password,
                name=payload.name,
            )
        except ValueError as e:
            if str(e) == "email_exists":
                raise Conflict("Email is already registered")
            raise
        return {
            kind: public_account(row, "id", "email", "name", "createdAt"),
            "token": _issue_token(ctx, row, kind),
        }

    @router.mutation("login", input=LoginInput)
    def login(ctx: Context, payload: LoginInput) -> Dict[str, Any]:
        row = verify_account_credentials(ctx.conn, kind, payload.email, payload.password)
        if row is None:
            raise Unauthorized(INVALID_CREDENTIALS)
        return {
            kind: public_account(row, "id", "email", "name"),
            "token": _issue_token(ctx, row, kind),
        }

    @router.query("me", gate=gate)
    def me(ctx: Context, _payload: None) -> Dict[str, Any]:
        user = current_user(ctx)
        row = get_account_by_id(ctx.conn, kind, user.id)
        if row is None:
            # Token outlived the account.
            raise NotFound(not_found)
        return public_account(row, "id", "email", "name", "createdAt", "updatedAt")

    @router.mutation("update", gate=gate, input=ProfileUpdateInput)
    def update(ctx: Context, payload: ProfileUpdateInput) -> Dict[str, Any]:
        user = current_user(ctx)
        row = update_account(
            ctx.conn,
            kind,
            user.id,
            name=payload.name,
            password=payload.password,
        )
        if row is None:
            raise NotFound(not_found)
        return public_account(row, "id", "email", "name", "updatedAt")

    return router
