"""Queries for task steps, the append-only history under each task."""

from datetime import UTC, datetime

from taskboard.db.connection import Database, Transaction
from taskboard.utils.sql import placeholders

_SELECT = """
    SELECT
        ts.id, ts.task_id, ts.content, ts.status_id, ts.assignee_user_id,
        ts.created_by, ts.created_at,
        s.name AS status, s.color AS status_color
    FROM task_steps ts
    LEFT JOIN statuses s ON s.id = ts.status_id
"""


async def list_task_steps(db: Database | Transaction, task_id: int) -> list[dict]:
    rows = await db.fetchall(
        f"{_SELECT} WHERE ts.task_id = ? ORDER BY ts.created_at ASC, ts.id ASC",
        (task_id,),
    )
    return [dict(row) for row in rows]


async def get_task_step(db: Database | Transaction, step_id: int) -> dict | None:
    row = await db.fetchone(f"{_SELECT} WHERE ts.id = ?", (step_id,))
    return dict(row) if row is not None else None


async def insert_task_step(
    db: Database | Transaction,
    task_id: int,
    content: str,
    created_by: str,
    assignee_user_id: int | None = None,
    status_id: int | None = None,
) -> int:
    cursor = await db.execute(
        """
        INSERT INTO task_steps
            (task_id, content, status_id, assignee_user_id, created_by, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (task_id, content, status_id, assignee_user_id, created_by,
         datetime.now(UTC).isoformat()),
    )
    return cursor.lastrowid


async def update_task_step_status(
    db: Database | Transaction, step_id: int, status_id: int | None
) -> int:
    cursor = await db.execute(
        "UPDATE task_steps SET status_id = ? WHERE id = ?", (status_id, step_id)
    )
    return cursor.rowcount


async def delete_task_steps(db: Database | Transaction, task_ids: list[int]) -> int:
    """Delete every step belonging to the given tasks."""
    if not task_ids:
        return 0
    cursor = await db.execute(
        f"DELETE FROM task_steps WHERE task_id IN ({placeholders(task_ids)})",
        tuple(task_ids),
    )
    return cursor.rowcount
