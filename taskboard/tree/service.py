"""Tree service: the single entry point for reading and changing the project tree.

Reads resolve qualifying task records and build the tree. Writes go through the
MutationEngine and are always followed by a fresh read, so callers receive
the post-mutation tree in the same response. Nothing is cached between calls.
"""

import logging

from taskboard.db.connection import Database
from taskboard.repositories import products as product_repo
from taskboard.repositories import projects as project_repo
from taskboard.repositories import statuses as status_repo
from taskboard.repositories import task_steps as step_repo
from taskboard.repositories import tasks as task_repo
from taskboard.repositories import users as user_repo
from taskboard.tree.builder import build_tree
from taskboard.tree.filters import parse_filter_values
from taskboard.tree.mutations import MutationEngine, RowNotFoundError, TreeValidationError
from taskboard.tree.resolver import TaskRecordResolver
from taskboard.tree.schemas import (
    CreateProductRequest,
    CreateProjectRequest,
    CreateStatusRequest,
    CreateTaskRequest,
    CreateTaskStepRequest,
    CreateUserRequest,
    StatusResponse,
    TaskStepResponse,
    TreeQuery,
    TreeResponse,
    UpdateRowRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

ROW_TYPES = ("project", "product", "task")


class TreeService:
    """Composes resolver + builder for reads, MutationEngine + rebuild for writes."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._resolver = TaskRecordResolver(db)
        self._mutations = MutationEngine(db)

    # -- Read path --

    async def get_tree(self, query: TreeQuery | None = None) -> TreeResponse:
        """Build the tree for the given view. Not wrapped in a transaction."""
        query = query or TreeQuery()
        await self._db.ensure_connected()
        keyword = query.q.strip()

        records = await self._resolver.resolve(
            keyword,
            parse_filter_values(query.status),
            parse_filter_values(query.assignee),
        )

        empty_projects = empty_products = None
        if query.include_empty:
            empty_projects = await project_repo.list_projects(self._db, keyword)
            empty_products = await product_repo.list_products(self._db, keyword)

        return build_tree(records, empty_projects, empty_products)

    # -- Write path --

    async def create_project(self, request: CreateProjectRequest) -> TreeResponse:
        await self._mutations.create_project(request.name, request.owner_id)
        return await self.get_tree(_view_of(request))

    async def create_product(self, request: CreateProductRequest) -> TreeResponse:
        await self._mutations.create_product(request.project_id, request.name, request.created_by)
        return await self.get_tree(_view_of(request))

    async def create_task(self, request: CreateTaskRequest) -> TreeResponse:
        await self._mutations.create_task(
            request.product_id,
            request.title,
            request.current_status,
            request.created_by,
            request.assignee_id,
        )
        return await self.get_tree(_view_of(request))

    async def update_row(
        self, row_type: str, row_id: int, request: UpdateRowRequest
    ) -> TreeResponse:
        """Rename a project/product, or partially update a task.

        Only fields present in the request body are applied.
        """
        _check_row_type(row_type)
        fields_set = request.model_fields_set - set(TreeQuery.model_fields)

        if row_type in ("project", "product"):
            extra = fields_set - {"name"}
            if extra:
                raise TreeValidationError(
                    f"Cannot update {', '.join(sorted(extra))} on a {row_type}"
                )
            if row_type == "project":
                await self._mutations.rename_project(row_id, request.name)
            else:
                await self._mutations.rename_product(row_id, request.name)
        else:
            if {"name", "title"} <= fields_set:
                raise TreeValidationError("Give either name or title, not both")
            fields: dict[str, object] = {}
            if "name" in fields_set:
                fields["title"] = request.name
            if "title" in fields_set:
                fields["title"] = request.title
            if "current_status" in fields_set:
                fields["status"] = request.current_status
            if "assignee_id" in fields_set:
                fields["assignee_id"] = request.assignee_id
            await self._mutations.update_task_fields(row_id, fields)

        return await self.get_tree(_view_of(request))

    async def delete_row(
        self, row_type: str, row_id: int, query: TreeQuery | None = None
    ) -> TreeResponse:
        """Delete a node and everything beneath it."""
        _check_row_type(row_type)
        if row_type == "project":
            await self._mutations.delete_project_tree(row_id)
        elif row_type == "product":
            await self._mutations.delete_product_tree(row_id)
        else:
            await self._mutations.delete_task_tree(row_id)
        return await self.get_tree(query)

    # -- Task steps --

    async def list_task_steps(self, task_id: int) -> list[TaskStepResponse]:
        if await task_repo.get_task(self._db, task_id) is None:
            raise RowNotFoundError("task", task_id)
        rows = await step_repo.list_task_steps(self._db, task_id)
        return [self._task_step_from_row(r) for r in rows]

    async def create_task_step(
        self, task_id: int, request: CreateTaskStepRequest
    ) -> TaskStepResponse:
        step_id = await self._mutations.create_task_step(
            task_id, request.content, request.created_by, request.assignee_id, request.status
        )
        return await self._get_task_step(step_id)

    async def update_task_step_status(
        self, step_id: int, status: str | int | None
    ) -> TaskStepResponse:
        await self._mutations.update_task_step_status(step_id, status)
        return await self._get_task_step(step_id)

    async def _get_task_step(self, step_id: int) -> TaskStepResponse:
        row = await step_repo.get_task_step(self._db, step_id)
        if row is None:
            raise RowNotFoundError("task_step", step_id)
        return self._task_step_from_row(row)

    # -- Statuses and users --

    async def list_statuses(self) -> list[StatusResponse]:
        return [StatusResponse(**row) for row in await status_repo.list_statuses(self._db)]

    async def create_status(self, request: CreateStatusRequest) -> StatusResponse:
        status_id = await self._mutations.create_status(request.name, request.color)
        row = await status_repo.get_status(self._db, status_id)
        assert row is not None
        return StatusResponse(**row)

    async def list_users(self) -> list[UserResponse]:
        return [UserResponse(**row) for row in await user_repo.list_users(self._db)]

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        user_id = await self._mutations.create_user(request.mail, request.username)
        row = await user_repo.get_user(self._db, user_id)
        assert row is not None
        return UserResponse(**row)

    @staticmethod
    def _task_step_from_row(row: dict) -> TaskStepResponse:
        return TaskStepResponse(
            id=row["id"],
            task_id=row["task_id"],
            content=row["content"],
            status=row["status"],
            status_id=row["status_id"],
            status_color=row["status_color"],
            assignee_id=row["assignee_user_id"],
            created_by=row["created_by"],
            created_at=row["created_at"],
        )


def _view_of(request: TreeQuery) -> TreeQuery:
    """The tree view parameters carried by a write request."""
    return TreeQuery(
        q=request.q,
        status=request.status,
        assignee=request.assignee,
        include_empty=request.include_empty,
    )


def _check_row_type(row_type: str) -> None:
    if row_type not in ROW_TYPES:
        raise TreeValidationError(f"Unknown row type: {row_type}")
