"""Shared test helpers: seed rows directly through the repositories."""

from taskboard.db.connection import Database
from taskboard.repositories import products as product_repo
from taskboard.repositories import projects as project_repo
from taskboard.repositories import statuses as status_repo
from taskboard.repositories import task_steps as step_repo
from taskboard.repositories import tasks as task_repo
from taskboard.repositories import users as user_repo
from taskboard.tree.resolver import TaskRecord


async def seed_project(db: Database, name: str = "Alpha", owner_id: str = "owner@example.com") -> int:
    return await project_repo.insert_project(db, name, owner_id)


async def seed_product(db: Database, project_id: int, name: str = "Widget") -> int:
    return await product_repo.insert_product(db, project_id, name, "creator@example.com")


async def seed_task(
    db: Database,
    product_id: int,
    title: str = "Fix bug",
    status: str | None = "open",
    assignee_id: int | None = None,
) -> int:
    status_id = await status_repo.get_or_create_status_id(db, status) if status else None
    return await task_repo.insert_task(
        db, product_id, title, status_id, "creator@example.com", assignee_id
    )


async def seed_step(db: Database, task_id: int, content: str = "Step") -> int:
    return await step_repo.insert_task_step(db, task_id, content, "creator@example.com")


async def seed_user(db: Database, username: str = "mei", mail: str | None = None) -> int:
    return await user_repo.insert_user(db, mail or f"{username}@example.com", username)


async def seed_alpha(db: Database) -> dict:
    """Project "Alpha" → product "Widget" → task "Fix bug" (status "open", no assignee)."""
    project_id = await seed_project(db, "Alpha")
    product_id = await seed_product(db, project_id, "Widget")
    task_id = await seed_task(db, product_id, "Fix bug", "open")
    return {"project_id": project_id, "product_id": product_id, "task_id": task_id}


async def count_rows(db: Database, table: str) -> int:
    row = await db.fetchone(f"SELECT COUNT(*) AS n FROM {table}")
    return row["n"]


def make_record(
    project_id: int = 1,
    product_id: int = 10,
    task_id: int = 100,
    *,
    project_name: str = "Alpha",
    product_name: str = "Widget",
    task_title: str = "Fix bug",
    status_name: str | None = "open",
    assignee_user_id: int | None = None,
) -> TaskRecord:
    """A TaskRecord with fixed timestamps, for builder tests."""
    return TaskRecord(
        task_id=task_id,
        task_title=task_title,
        status_id=1 if status_name else None,
        status_name=status_name,
        status_color="#fde68a" if status_name else None,
        assignee_user_id=assignee_user_id,
        assignee_name=None,
        task_created_by="creator@example.com",
        task_created_at="2025-01-03T00:00:00+00:00",
        task_updated_at="2025-01-03T00:00:00+00:00",
        product_id=product_id,
        product_name=product_name,
        product_created_by="creator@example.com",
        product_created_at="2025-01-02T00:00:00+00:00",
        product_updated_at="2025-01-02T00:00:00+00:00",
        project_id=project_id,
        project_name=project_name,
        project_owner_id="owner@example.com",
        project_created_at="2025-01-01T00:00:00+00:00",
        project_updated_at="2025-01-01T00:00:00+00:00",
    )
