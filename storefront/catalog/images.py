from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from storefront.db import new_id
from storefront.util.time import parse_iso, utcnow_iso


def public_image(row: Any) -> Dict[str, Any]:
    d = dict(row)
    return {
        "id": d["id"],
        "url": d["url"],
        "publicId": d["public_id"],
        "productId": d["product_id"],
        "createdAt": parse_iso(d.get("created_at")),
    }


def insert_image(conn: Any, *, product_id: str, url: str, public_id: str) -> Dict[str, Any]:
    image_id = new_id()
    now = utcnow_iso()
    conn.execute(
        "INSERT INTO images (id, url, public_id, product_id, created_at) VALUES (?,?,?,?,?)",
        (image_id, url, public_id, product_id, now),
    )
    return {
        "id": image_id,
        "url": url,
        "publicId": public_id,
        "productId": product_id,
        "createdAt": parse_iso(now),
    }


def list_images(conn: Any, product_id: str) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM images WHERE product_id=? ORDER BY created_at ASC, id ASC",
        (product_id,),
    ).fetchall()
    return [public_image(r) for r in rows]


def images_by_product(conn: Any, product_ids: Iterable[str]) -> Dict[str, List[Dict[str, Any]]]:
    """Images for many products in one query, keyed by product id."""
    ids = list(dict.fromkeys(product_ids))
    out: Dict[str, List[Dict[str, Any]]] = {pid: [] for pid in ids}
    if not ids:
        return out
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"SELECT * FROM images WHERE product_id IN ({placeholders}) ORDER BY created_at ASC, id ASC",
        ids,
    ).fetchall()
    for r in rows:
        img = public_image(r)
        out[img["productId"]].append(img)
    return out


def get_image_with_owner(conn: Any, image_id: str) -> Optional[Any]:
    """Image row plus the owning admin id of its product (column `admin_id`)."""
    return conn.execute(
        """
        SELECT i.*, p.admin_id AS admin_id
        FROM images i
        JOIN products p ON p.id = i.product_id
        WHERE i.id=?
        """,
        (image_id,),
    ).fetchone()


def delete_image(conn: Any, image_id: str) -> bool:
    cur = conn.execute("DELETE FROM images WHERE id=?", (image_id,))
    return cur.rowcount > 0
