"""Queries for the products table (tree level 1)."""

from datetime import UTC, datetime

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import folded_like, like_pattern, placeholders

_COLUMNS = "id, project_id, name, created_by, created_at, updated_at"


async def list_products(db: Database | Transaction, keyword: str = "") -> list[dict]:
    """Products joined with their project, in project then product creation order.

    With a keyword, only products whose own name contains it.
    """
    where = ""
    params: tuple = ()
    if keyword:
        where = f"WHERE {folded_like('p.name')}"
        params = (like_pattern(keyword),)
    rows = await db.fetchall(
        f"""
        SELECT
            p.id, p.project_id, p.name, p.created_by, p.created_at, p.updated_at,
            pr.name AS project_name,
            pr.created_at AS project_created_at,
            pr.updated_at AS project_updated_at
        FROM products p
        JOIN projects pr ON pr.id = p.project_id
        {where}
        ORDER BY pr.created_at ASC, pr.id ASC, p.created_at ASC, p.id ASC
        """,
        params,
    )
    return [dict(row) for row in rows]


async def get_product(db: Database | Transaction, product_id: int) -> dict | None:
    row = await db.fetchone(f"SELECT {_COLUMNS} FROM products WHERE id = ?", (product_id,))
    return dict(row) if row is not None else None


async def list_product_ids(db: Database | Transaction, project_id: int) -> list[int]:
    rows = await db.fetchall(
        "SELECT id FROM products WHERE project_id = ? ORDER BY id", (project_id,)
    )
    return [row["id"] for row in rows]


async def insert_product(
    db: Database | Transaction, project_id: int, name: str, created_by: str
) -> int:
    now = datetime.now(UTC).isoformat()
    cursor = await db.execute(
        "INSERT INTO products (project_id, name, created_by, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?)",
        (project_id, name, created_by, now, now),
    )
    return cursor.lastrowid


async def rename_product(db: Database | Transaction, product_id: int, name: str) -> int:
    """Returns the number of rows changed (0 when the product does not exist)."""
    cursor = await db.execute(
        "UPDATE products SET name = ?, updated_at = ? WHERE id = ?",
        (name, datetime.now(UTC).isoformat(), product_id),
    )
    return cursor.rowcount


async def delete_products(db: Database | Transaction, product_ids: list[int]) -> int:
    if not product_ids:
        return 0
    cursor = await db.execute(
        f"DELETE FROM products WHERE id IN ({placeholders(product_ids)})",
        tuple(product_ids),
    )
    return cursor.rowcount
