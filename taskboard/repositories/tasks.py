"""Queries for the tasks table (tree level 2)."""

from datetime import UTC, datetime

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import placeholders

_COLUMNS = "id, product_id, title, status_id, assignee_user_id, created_by, created_at, updated_at"

# Column names update_task may write. Keys of the ``values`` mapping outside
# this set are rejected.
UPDATABLE_COLUMNS = frozenset({"title", "status_id", "assignee_user_id"})


async def get_task(db: Database | Transaction, task_id: int) -> dict | None:
    row = await db.fetchone(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
    return dict(row) if row is not None else None


async def list_task_ids(db: Database | Transaction, product_ids: list[int]) -> list[int]:
    if not product_ids:
        return []
    rows = await db.fetchall(
        f"SELECT id FROM tasks WHERE product_id IN ({placeholders(product_ids)}) ORDER BY id",
        tuple(product_ids),
    )
    return [row["id"] for row in rows]


async def insert_task(
    db: Database | Transaction,
    product_id: int,
    title: str,
    status_id: int | None,
    created_by: str,
    assignee_user_id: int | None = None,
) -> int:
    now = datetime.now(UTC).isoformat()
    cursor = await db.execute(
        """
        INSERT INTO tasks
            (product_id, title, status_id, assignee_user_id, created_by, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (product_id, title, status_id, assignee_user_id, created_by, now, now),
    )
    return cursor.lastrowid


async def update_task(db: Database | Transaction, task_id: int, values: dict) -> int:
    """Write only the columns present in ``values``. Returns rows changed."""
    unknown = set(values) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Not updatable on tasks: {sorted(unknown)}")
    columns = [c for c in ("title", "status_id", "assignee_user_id") if c in values]
    assignments = [f"{c} = ?" for c in columns] + ["updated_at = ?"]
    params = [values[c] for c in columns] + [datetime.now(UTC).isoformat(), task_id]
    cursor = await db.execute(
        f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?", tuple(params)
    )
    return cursor.rowcount


async def delete_tasks(db: Database | Transaction, task_ids: list[int]) -> int:
    if not task_ids:
        return 0
    cursor = await db.execute(
        f"DELETE FROM tasks WHERE id IN ({placeholders(task_ids)})", tuple(task_ids)
    )
    return cursor.rowcount
