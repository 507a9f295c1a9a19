"""Structural mutations on the project tree.

Each public method validates its arguments before touching the store, then
runs inside a single ``Database.transaction()``: either every statement
commits or none does. Cascading deletes remove rows leaf-first
(task_steps, tasks, products, project) so no child is ever left without
its parent.
"""

import logging
from collections.abc import Mapping

from taskboard.db.connection import Database, Transaction
from taskboard.repositories import products as product_repo
from taskboard.repositories import projects as project_repo
from taskboard.repositories import statuses as status_repo
from taskboard.repositories import task_steps as step_repo
from taskboard.repositories import tasks as task_repo
from taskboard.repositories import users as user_repo
from taskboard.tree.filters import IdFilter, parse_filter_value

logger = logging.getLogger(__name__)

TASK_UPDATE_FIELDS = frozenset({"title", "status", "assignee_id"})


class MutationEngine:
    """Transactional create/rename/update/delete for projects, products and tasks."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # -- Create --

    async def create_project(self, name: str, owner_id: str) -> int:
        name = _require_text(name, "name")
        owner_id = _require_text(owner_id, "owner_id")
        async with self._db.transaction() as tx:
            project_id = await project_repo.insert_project(tx, name, owner_id)
        logger.info("Created project %s %r", project_id, name)
        return project_id

    async def create_product(self, project_id: int, name: str, created_by: str) -> int:
        _require_id(project_id, "project_id")
        name = _require_text(name, "name")
        created_by = _require_text(created_by, "created_by")
        async with self._db.transaction() as tx:
            if await project_repo.get_project(tx, project_id) is None:
                raise RowNotFoundError("project", project_id)
            product_id = await product_repo.insert_product(tx, project_id, name, created_by)
        logger.info("Created product %s %r under project %s", product_id, name, project_id)
        return product_id

    async def create_task(
        self,
        product_id: int,
        title: str,
        status: str | int | None,
        created_by: str,
        assignee_id: int | None = None,
    ) -> int:
        _require_id(product_id, "product_id")
        title = _require_text(title, "title")
        created_by = _require_text(created_by, "created_by")
        if assignee_id is not None:
            _require_id(assignee_id, "assignee_id")
        async with self._db.transaction() as tx:
            if await product_repo.get_product(tx, product_id) is None:
                raise RowNotFoundError("product", product_id)
            status_id = await _resolve_status_id(tx, status)
            await _check_user(tx, assignee_id)
            task_id = await task_repo.insert_task(
                tx, product_id, title, status_id, created_by, assignee_id
            )
        logger.info("Created task %s %r under product %s", task_id, title, product_id)
        return task_id

    # -- Rename / update --

    async def rename_project(self, project_id: int, name: str) -> None:
        _require_id(project_id, "project_id")
        name = _require_text(name, "name")
        async with self._db.transaction() as tx:
            if await project_repo.rename_project(tx, project_id, name) == 0:
                raise RowNotFoundError("project", project_id)
        logger.info("Renamed project %s to %r", project_id, name)

    async def rename_product(self, product_id: int, name: str) -> None:
        _require_id(product_id, "product_id")
        name = _require_text(name, "name")
        async with self._db.transaction() as tx:
            if await product_repo.rename_product(tx, product_id, name) == 0:
                raise RowNotFoundError("product", product_id)
        logger.info("Renamed product %s to %r", product_id, name)

    async def update_task_fields(self, task_id: int, fields: Mapping[str, object]) -> None:
        """Write only the keys present in ``fields``.

        ``title`` must be non-blank, ``status`` is a name, an id, or None to
        clear it, ``assignee_id`` is a user id or None to clear it. A missing
        key leaves that column alone.
        """
        _require_id(task_id, "task_id")
        unknown = set(fields) - TASK_UPDATE_FIELDS
        if unknown:
            raise TreeValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        if "title" in fields:
            title = _require_text(fields["title"], "title")
        assignee_id = fields.get("assignee_id")
        if assignee_id is not None:
            _require_id(assignee_id, "assignee_id")

        async with self._db.transaction() as tx:
            if await task_repo.get_task(tx, task_id) is None:
                raise RowNotFoundError("task", task_id)
            if not fields:
                return
            values: dict[str, object] = {}
            if "title" in fields:
                values["title"] = title
            if "status" in fields:
                values["status_id"] = await _resolve_status_id(tx, fields["status"])
            if "assignee_id" in fields:
                await _check_user(tx, assignee_id)
                values["assignee_user_id"] = assignee_id
            await task_repo.update_task(tx, task_id, values)
        logger.info("Updated task %s: %s", task_id, ", ".join(sorted(fields)))

    # -- Cascading delete --

    async def delete_project_tree(self, project_id: int) -> None:
        _require_id(project_id, "project_id")
        async with self._db.transaction() as tx:
            if await project_repo.get_project(tx, project_id) is None:
                raise RowNotFoundError("project", project_id)
            product_ids = await product_repo.list_product_ids(tx, project_id)
            task_ids = await task_repo.list_task_ids(tx, product_ids)
            steps = await step_repo.delete_task_steps(tx, task_ids)
            await task_repo.delete_tasks(tx, task_ids)
            await product_repo.delete_products(tx, product_ids)
            await project_repo.delete_project(tx, project_id)
        logger.info(
            "Deleted project %s with %d products, %d tasks, %d steps",
            project_id, len(product_ids), len(task_ids), steps,
        )

    async def delete_product_tree(self, product_id: int) -> None:
        _require_id(product_id, "product_id")
        async with self._db.transaction() as tx:
            if await product_repo.get_product(tx, product_id) is None:
                raise RowNotFoundError("product", product_id)
            task_ids = await task_repo.list_task_ids(tx, [product_id])
            steps = await step_repo.delete_task_steps(tx, task_ids)
            await task_repo.delete_tasks(tx, task_ids)
            await product_repo.delete_products(tx, [product_id])
        logger.info(
            "Deleted product %s with %d tasks, %d steps", product_id, len(task_ids), steps
        )

    async def delete_task_tree(self, task_id: int) -> None:
        _require_id(task_id, "task_id")
        async with self._db.transaction() as tx:
            if await task_repo.get_task(tx, task_id) is None:
                raise RowNotFoundError("task", task_id)
            steps = await step_repo.delete_task_steps(tx, [task_id])
            await task_repo.delete_tasks(tx, [task_id])
        logger.info("Deleted task %s with %d steps", task_id, steps)

    # -- Task steps, statuses, users --

    async def create_task_step(
        self,
        task_id: int,
        content: str,
        created_by: str,
        assignee_id: int | None = None,
        status: str | int | None = None,
    ) -> int:
        _require_id(task_id, "task_id")
        content = _require_text(content, "content")
        created_by = _require_text(created_by, "created_by")
        if assignee_id is not None:
            _require_id(assignee_id, "assignee_id")
        async with self._db.transaction() as tx:
            if await task_repo.get_task(tx, task_id) is None:
                raise RowNotFoundError("task", task_id)
            status_id = await _resolve_status_id(tx, status)
            await _check_user(tx, assignee_id)
            step_id = await step_repo.insert_task_step(
                tx, task_id, content, created_by, assignee_id, status_id
            )
        logger.info("Added step %s to task %s", step_id, task_id)
        return step_id

    async def update_task_step_status(self, step_id: int, status: str | int | None) -> None:
        _require_id(step_id, "step_id")
        async with self._db.transaction() as tx:
            if await step_repo.get_task_step(tx, step_id) is None:
                raise RowNotFoundError("task_step", step_id)
            status_id = await _resolve_status_id(tx, status)
            await step_repo.update_task_step_status(tx, step_id, status_id)
        logger.info("Task step %s status set to %s", step_id, status_id)

    async def create_status(self, name: str, color: str) -> int:
        name = _require_text(name, "name")
        async with self._db.transaction() as tx:
            if await status_repo.find_status_ids_by_names(tx, [name]):
                raise TreeValidationError(f"Status already exists: {name}")
            status_id = await status_repo.insert_status(tx, name, color)
        logger.info("Created status %s %r", status_id, name)
        return status_id

    async def create_user(self, mail: str, username: str) -> int:
        mail = _require_text(mail, "mail")
        username = _require_text(username, "username")
        async with self._db.transaction() as tx:
            if await user_repo.find_user_id_by_mail(tx, mail) is not None:
                raise TreeValidationError(f"User already exists: {mail}")
            user_id = await user_repo.insert_user(tx, mail, username)
        logger.info("Created user %s %r", user_id, mail)
        return user_id


async def _resolve_status_id(tx: Transaction, status: str | int | None) -> int | None:
    """Status id for a name (created on first use) or an existing id. None clears."""
    value = parse_filter_value(status)
    if value is None:
        return None
    if isinstance(value, IdFilter):
        if await status_repo.get_status(tx, value.value) is None:
            raise RowNotFoundError("status", value.value)
        return value.value
    return await status_repo.get_or_create_status_id(tx, value.name)


async def _check_user(tx: Transaction, user_id: int | None) -> None:
    if user_id is not None and await user_repo.get_user(tx, user_id) is None:
        raise RowNotFoundError("user", user_id)


def _require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TreeValidationError(f"{field} is required")
    return value.strip()


def _require_id(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise TreeValidationError(f"{field} must be a positive integer, got {value!r}")
    return value


class TreeValidationError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RowNotFoundError(Exception):
    def __init__(self, row_type: str, row_id: int) -> None:
        self.row_type = row_type
        self.row_id = row_id
        super().__init__(f"{row_type.capitalize()} not found: {row_id}")
