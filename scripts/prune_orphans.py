"""
One-shot cleanup: delete products, tasks and task steps whose parent row
no longer exists.

Databases written before foreign keys were enforced can hold such rows
(e.g. a task left behind after its product was removed by hand). They
never show up in the tree, because the tree joins through every level,
but they still count against ids and indexes.

Parents are pruned before children, so a product removed here takes its
tasks and their steps with it in the same run.

Usage:
    python scripts/prune_orphans.py [path/to/taskboard.db]
"""

import sqlite3
import sys
from pathlib import Path

_ORPHAN_QUERIES = [
    (
        "products",
        "SELECT id FROM products WHERE project_id NOT IN (SELECT id FROM projects)",
    ),
    (
        "tasks",
        "SELECT id FROM tasks WHERE product_id NOT IN (SELECT id FROM products)",
    ),
    (
        "task_steps",
        "SELECT id FROM task_steps WHERE task_id NOT IN (SELECT id FROM tasks)",
    ),
]


def get_db_path() -> Path:
    """Resolve the default database path relative to the project root."""
    return Path(__file__).resolve().parent.parent / "taskboard.db"


def prune(conn: sqlite3.Connection) -> dict[str, int]:
    """Delete orphaned rows level by level. Returns rows deleted per table."""
    deleted: dict[str, int] = {}
    for table, query in _ORPHAN_QUERIES:
        ids = [row[0] for row in conn.execute(query).fetchall()]
        if ids:
            marks = ", ".join("?" for _ in ids)
            conn.execute(f"DELETE FROM {table} WHERE id IN ({marks})", ids)
        deleted[table] = len(ids)
    conn.commit()
    return deleted


if __name__ == "__main__":
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else get_db_path()
    if not db_path.exists():
        print(f"Database not found at {db_path}")
        sys.exit(1)
    print(f"Database: {db_path}")
    conn = sqlite3.connect(str(db_path))
    try:
        counts = prune(conn)
    finally:
        conn.close()
    for table, count in counts.items():
        print(f"  {table}: {count} orphaned row(s) deleted")
    print(f"\nDone. Deleted {sum(counts.values())} row(s).")
