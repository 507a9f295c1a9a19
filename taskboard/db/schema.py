"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency."""

import logging
import sqlite3
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS statuses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    color TEXT NOT NULL DEFAULT '#e2e8f0'
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    mail TEXT NOT NULL UNIQUE,
    username TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    owner_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_projects_created_at ON projects(created_at);

CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (project_id) REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_products_project_id ON products(project_id);

CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    status_id INTEGER,
    assignee_user_id INTEGER,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (product_id) REFERENCES products(id),
    FOREIGN KEY (status_id) REFERENCES statuses(id),
    FOREIGN KEY (assignee_user_id) REFERENCES users(id)
);

CREATE INDEX IF NOT EXISTS idx_tasks_product_id ON tasks(product_id);
CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assignee_user_id);

CREATE TABLE IF NOT EXISTS task_steps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id INTEGER NOT NULL,
    content TEXT NOT NULL,
    status_id INTEGER,
    assignee_user_id INTEGER,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (task_id) REFERENCES tasks(id),
    FOREIGN KEY (status_id) REFERENCES statuses(id),
    FOREIGN KEY (assignee_user_id) REFERENCES users(id)
);

CREATE INDEX IF NOT EXISTS idx_task_steps_task_id ON task_steps(task_id);

CREATE TABLE IF NOT EXISTS schema_migrations (
    name TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

# Applied in order, once each, and recorded in schema_migrations. The status
# columns cover databases created when task status was a free-text column.
_MIGRATIONS: list[tuple[str, str]] = [
    (
        "001_tasks_status_id",
        "ALTER TABLE tasks ADD COLUMN status_id INTEGER REFERENCES statuses(id)",
    ),
    (
        "002_task_steps_status_id",
        "ALTER TABLE task_steps ADD COLUMN status_id INTEGER REFERENCES statuses(id)",
    ),
    (
        "003_idx_tasks_status_id",
        "CREATE INDEX IF NOT EXISTS idx_tasks_status_id ON tasks(status_id)",
    ),
]


async def run_migrations(db: object) -> None:
    """Apply migrations not yet recorded in schema_migrations.

    A duplicate-column error means the column predates tracking; the migration
    is recorded as applied. Any other error propagates.
    """
    await db.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations ("
        "name TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
    )
    rows = await db.fetchall("SELECT name FROM schema_migrations")
    applied = {row["name"] for row in rows}

    for name, sql in _MIGRATIONS:
        if name in applied:
            continue
        try:
            await db.execute(sql)
        except sqlite3.OperationalError as e:
            if "duplicate column name" not in str(e):
                raise
            logger.info("Migration %s already present, recording it", name)
        await db.execute(
            "INSERT INTO schema_migrations (name, applied_at) VALUES (?, ?)",
            (name, datetime.now(UTC).isoformat()),
        )
