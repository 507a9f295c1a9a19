"""Queries for the user directory used for assignees."""

from datetime import UTC, datetime

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import casefold, placeholders


async def list_users(db: Database | Transaction) -> list[dict]:
    rows = await db.fetchall(
        "SELECT id, mail, username, created_at FROM users ORDER BY id ASC"
    )
    return [dict(row) for row in rows]


async def get_user(db: Database | Transaction, user_id: int) -> dict | None:
    row = await db.fetchone(
        "SELECT id, mail, username, created_at FROM users WHERE id = ?", (user_id,)
    )
    return dict(row) if row is not None else None


async def find_user_ids_by_names(db: Database | Transaction, names: list[str]) -> list[int]:
    """Ids of users whose username or mail matches any of ``names``, ignoring case."""
    if not names:
        return []
    folded = [casefold(name) for name in names]
    marks = placeholders(folded)
    rows = await db.fetchall(
        "SELECT id FROM users"
        f" WHERE casefold(username) IN ({marks}) OR casefold(mail) IN ({marks})"
        " ORDER BY id",
        tuple(folded) * 2,
    )
    return [row["id"] for row in rows]


async def find_user_id_by_mail(db: Database | Transaction, mail: str) -> int | None:
    row = await db.fetchone(
        "SELECT id FROM users WHERE casefold(mail) = ?", (casefold(mail),)
    )
    return row["id"] if row is not None else None


async def insert_user(db: Database | Transaction, mail: str, username: str) -> int:
    cursor = await db.execute(
        "INSERT INTO users (mail, username, created_at) VALUES (?, ?, ?)",
        (mail, username, datetime.now(UTC).isoformat()),
    )
    return cursor.lastrowid
