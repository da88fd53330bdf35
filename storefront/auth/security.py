from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from storefront.models import ROLES, Identity


# Fixed work factor; changing it only affects newly hashed passwords.
PASSWORD_HASH_ROUNDS = 29000

_pwd = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=PASSWORD_HASH_ROUNDS,
)
_JWT_ALG = "HS256"


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unrecognized / malformed hash
        return False


def create_access_token(
    *,
    secret: str,
    identity: Identity,
    expires_minutes: int,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": identity.id,
        "email": identity.email,
        "role": identity.role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(
        token,
        secret,
        algorithms=[_JWT_ALG],
        options={"require": ["sub", "exp"]},
    )


def verify_access_token(*, token: str, secret: str) -> Optional[Identity]:
    """Return the identity carried by `token`, or None if it is not valid.

    Expired, malformed, badly signed or incomplete tokens all yield None;
    nothing is raised past this function.
    """
    try:
        payload = decode_access_token(token=token, secret=secret)
    except (jwt.InvalidTokenError, ValueError):
        return None

    sub = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    if not isinstance(sub, str) or not sub:
        return None
    if not isinstance(email, str) or role not in ROLES:
        return None
    return Identity(id=sub, email=email, role=role)
