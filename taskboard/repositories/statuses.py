"""Queries for the shared status enumeration."""

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import casefold, placeholders

DEFAULT_STATUS_COLOR = "#e2e8f0"


async def list_statuses(db: Database | Transaction) -> list[dict]:
    rows = await db.fetchall("SELECT id, name, color FROM statuses ORDER BY id ASC")
    return [dict(row) for row in rows]


async def get_status(db: Database | Transaction, status_id: int) -> dict | None:
    row = await db.fetchone(
        "SELECT id, name, color FROM statuses WHERE id = ?", (status_id,)
    )
    return dict(row) if row is not None else None


async def find_status_ids_by_names(db: Database | Transaction, names: list[str]) -> list[int]:
    """Ids of statuses whose name matches any of ``names``, ignoring case."""
    if not names:
        return []
    folded = [casefold(name) for name in names]
    rows = await db.fetchall(
        f"SELECT id FROM statuses WHERE casefold(name) IN ({placeholders(folded)}) ORDER BY id",
        tuple(folded),
    )
    return [row["id"] for row in rows]


async def insert_status(
    db: Database | Transaction, name: str, color: str = DEFAULT_STATUS_COLOR
) -> int:
    cursor = await db.execute(
        "INSERT INTO statuses (name, color) VALUES (?, ?)", (name, color)
    )
    return cursor.lastrowid


async def get_or_create_status_id(db: Database | Transaction, name: str) -> int:
    """Resolve a status name to its id, creating the status if it is new."""
    ids = await find_status_ids_by_names(db, [name])
    if ids:
        return ids[0]
    return await insert_status(db, name)
