"""Queries for the projects table (tree level 0)."""

from datetime import UTC, datetime

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import folded_like, like_pattern

_COLUMNS = "id, name, owner_id, created_at, updated_at"


async def list_projects(db: Database | Transaction, keyword: str = "") -> list[dict]:
    """All projects in creation order, optionally only those whose name contains ``keyword``."""
    if keyword:
        rows = await db.fetchall(
            f"SELECT {_COLUMNS} FROM projects WHERE {folded_like('name')}"
            " ORDER BY created_at ASC, id ASC",
            (like_pattern(keyword),),
        )
    else:
        rows = await db.fetchall(
            f"SELECT {_COLUMNS} FROM projects ORDER BY created_at ASC, id ASC"
        )
    return [dict(row) for row in rows]


async def get_project(db: Database | Transaction, project_id: int) -> dict | None:
    row = await db.fetchone(f"SELECT {_COLUMNS} FROM projects WHERE id = ?", (project_id,))
    return dict(row) if row is not None else None


async def insert_project(db: Database | Transaction, name: str, owner_id: str) -> int:
    now = datetime.now(UTC).isoformat()
    cursor = await db.execute(
        "INSERT INTO projects (name, owner_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (name, owner_id, now, now),
    )
    return cursor.lastrowid


async def rename_project(db: Database | Transaction, project_id: int, name: str) -> int:
    """Returns the number of rows changed (0 when the project does not exist)."""
    cursor = await db.execute(
        "UPDATE projects SET name = ?, updated_at = ? WHERE id = ?",
        (name, datetime.now(UTC).isoformat(), project_id),
    )
    return cursor.rowcount


async def delete_project(db: Database | Transaction, project_id: int) -> int:
    cursor = await db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
    return cursor.rowcount
