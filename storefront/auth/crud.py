from __future__ import annotations

from typing import Any, Dict, Optional

from storefront.db import new_id
from storefront.models import ROLE_ADMIN, ROLE_USER
from storefront.util.time import parse_iso, utcnow_iso

from .security import hash_password, verify_password


# Identity kind -> table. Admins and users never share rows or emails.
_TABLES = {ROLE_ADMIN: "admins", ROLE_USER: "users"}


def _table(kind: str) -> str:
    try:
        return _TABLES[kind]
    except KeyError:
        raise ValueError("invalid_role") from None


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_account(row: Any, *fields: str) -> Dict[str, Any]:
    """Map a DB row to its wire shape, dropping the password hash.

    `fields` picks a subset of: id, email, name, createdAt, updatedAt.
    """
    d = dict(row)
    full = {
        "id": d["id"],
        "email": d["email"],
        "name": d.get("name"),
        "createdAt": parse_iso(d.get("created_at")),
        "updatedAt": parse_iso(d.get("updated_at")),
    }
    if not fields:
        return full
    return {k: full[k] for k in fields}


def get_account_by_email(conn: Any, kind: str, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        f"SELECT * FROM {_table(kind)} WHERE email=?",
        (e,),
    ).fetchone()


def get_account_by_id(conn: Any, kind: str, account_id: str) -> Optional[Any]:
    return conn.execute(
        f"SELECT * FROM {_table(kind)} WHERE id=?",
        (str(account_id),),
    ).fetchone()


def verify_account_credentials(conn: Any, kind: str, email: str, password: str) -> Optional[Any]:
    row = get_account_by_email(conn, kind, email)
    if row is None:
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return row


def create_account(
    conn: Any,
    kind: str,
    *,
    email: str,
    password: str,
    name: str | None = None,
) -> Any:
    """Insert a new admin or user and return its row.

    Raises ValueError("email_exists") when the email is taken for this kind.
    """
    table = _table(kind)
    e = normalize_email(email)
    if not e:
        raise ValueError("email_blank")

    existing = conn.execute(f"SELECT 1 FROM {table} WHERE email=?", (e,)).fetchone()
    if existing is not None:
        raise ValueError("email_exists")

    account_id = new_id()
    now = utcnow_iso()
    conn.execute(
        f"""
        INSERT INTO {table} (id, email, password_hash, name, created_at, updated_at)
        VALUES (?,?,?,?,?,?)
        """,
        (account_id, e, hash_password(password), name, now, now),
    )
    row = get_account_by_id(conn, kind, account_id)
    if row is None:
        raise RuntimeError(f"{kind} {account_id} missing after insert")
    return row


def update_account(
    conn: Any,
    kind: str,
    account_id: str,
    *,
    name: str | None = None,
    password: str | None = None,
) -> Optional[Any]:
    """Partial profile update; only provided fields are touched.

    Returns the updated row, or None if the account no longer exists.
    """
    fields: list[tuple[str, Any]] = []
    if name:
        fields.append(("name", name))
    if password:
        fields.append(("password_hash", hash_password(password)))
    fields.append(("updated_at", utcnow_iso()))

    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [str(account_id)]
    cur = conn.execute(f"UPDATE {_table(kind)} SET {sets} WHERE id=?", params)
    if cur.rowcount == 0:
        return None
    return get_account_by_id(conn, kind, account_id)
