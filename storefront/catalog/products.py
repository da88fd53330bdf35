"""Product persistence.

Listing uses cursor pagination over (created_at DESC, id DESC). A cursor is
the id of the first product not yet returned; the next page starts at (and
includes) that product.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from storefront.db import new_id
from storefront.util.time import parse_iso, utcnow_iso

from .images import images_by_product, insert_image


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_UPDATABLE = ("name", "description", "price")


def public_product(row: Any) -> Dict[str, Any]:
    d = dict(row)
    return {
        "id": d["id"],
        "name": d["name"],
        "description": d.get("description"),
        "price": float(d["price"]),
        "adminId": d["admin_id"],
        "createdAt": parse_iso(d.get("created_at")),
        "updatedAt": parse_iso(d.get("updated_at")),
    }


def owner_summaries(conn: Any, admin_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
    """Redacted owner info (id, name, email) keyed by admin id."""
    ids = list(dict.fromkeys(admin_ids))
    if not ids:
        return {}
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"SELECT id, name, email FROM admins WHERE id IN ({placeholders})",
        ids,
    ).fetchall()
    return {r["id"]: {"id": r["id"], "name": r["name"], "email": r["email"]} for r in rows}


def hydrate(conn: Any, rows: Sequence[Any], *, with_owner: bool) -> List[Dict[str, Any]]:
    """Attach `images` (and optionally the `admin` summary) to product rows."""
    products = [public_product(r) for r in rows]
    images = images_by_product(conn, [p["id"] for p in products])
    owners = owner_summaries(conn, [p["adminId"] for p in products]) if with_owner else {}
    for p in products:
        p["images"] = images.get(p["id"], [])
        if with_owner:
            p["admin"] = owners.get(p["adminId"])
    return products


def get_product(conn: Any, product_id: str) -> Optional[Any]:
    return conn.execute("SELECT * FROM products WHERE id=?", (product_id,)).fetchone()


def get_owned_product(conn: Any, product_id: str, admin_id: str) -> Optional[Any]:
    """Product row only if it exists *and* belongs to `admin_id`."""
    return conn.execute(
        "SELECT * FROM products WHERE id=? AND admin_id=?",
        (product_id, admin_id),
    ).fetchone()


def list_page(
    conn: Any,
    *,
    limit: int = DEFAULT_PAGE_SIZE,
    cursor: str | None = None,
    admin_id: str | None = None,
) -> Tuple[List[Any], Optional[str]]:
    """One page of product rows, newest first.

    Fetches limit+1 rows; the extra row (if any) becomes the next cursor.
    Raises ValueError("cursor_not_found") for an unknown cursor.
    """
    limit = max(1, min(MAX_PAGE_SIZE, int(limit)))
    where: List[str] = []
    params: List[Any] = []

    if admin_id is not None:
        where.append("admin_id=?")
        params.append(admin_id)

    if cursor:
        anchor = get_product(conn, cursor)
        if anchor is None or (admin_id is not None and anchor["admin_id"] != admin_id):
            raise ValueError("cursor_not_found")
        where.append("(created_at < ? OR (created_at = ? AND id <= ?))")
        params.extend([anchor["created_at"], anchor["created_at"], anchor["id"]])

    sql = "SELECT * FROM products"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
    params.append(limit + 1)

    rows = list(conn.execute(sql, params).fetchall())
    next_cursor: Optional[str] = None
    if len(rows) > limit:
        next_cursor = str(rows.pop()["id"])
    return rows, next_cursor


def create_product(
    conn: Any,
    *,
    admin_id: str,
    name: str,
    price: float,
    description: str | None = None,
    images: Sequence[Dict[str, str]] = (),
) -> Any:
    """Insert a product and its initial images in the caller's transaction."""
    product_id = new_id()
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO products (id, name, description, price, admin_id, created_at, updated_at)
        VALUES (?,?,?,?,?,?,?)
        """,
        (product_id, name, description, float(price), admin_id, now, now),
    )
    for img in images:
        insert_image(conn, product_id=product_id, url=img["url"], public_id=img["public_id"])
    row = get_product(conn, product_id)
    if row is None:
        raise RuntimeError(f"product {product_id} missing after insert")
    return row


def update_product(conn: Any, product_id: str, **changes: Any) -> Optional[Any]:
    """Apply the provided (non-None) fields; updated_at is always bumped."""
    fields: list[tuple[str, Any]] = []
    for key in _UPDATABLE:
        value = changes.get(key)
        if value is None:
            continue
        fields.append((key, float(value) if key == "price" else value))
    fields.append(("updated_at", utcnow_iso()))

    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [product_id]
    cur = conn.execute(f"UPDATE products SET {sets} WHERE id=?", params)
    if cur.rowcount == 0:
        return None
    return get_product(conn, product_id)


def delete_product(conn: Any, product_id: str) -> bool:
    # Images go with it (ON DELETE CASCADE).
    cur = conn.execute("DELETE FROM products WHERE id=?", (product_id,))
    return cur.rowcount > 0
