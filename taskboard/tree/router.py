"""FastAPI routes for the project tree, task steps, statuses and users."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from taskboard.db.connection import StoreError
from taskboard.tree.mutations import RowNotFoundError, TreeValidationError
from taskboard.tree.schemas import (
    CreateProductRequest,
    CreateProjectRequest,
    CreateStatusRequest,
    CreateTaskRequest,
    CreateTaskStepRequest,
    CreateUserRequest,
    PatchTaskStepRequest,
    StatusResponse,
    TaskStepResponse,
    TaskStepsRequest,
    TreeQuery,
    TreeResponse,
    UpdateRowRequest,
    UserResponse,
)
from taskboard.tree.service import TreeService

router = APIRouter(prefix="/api/create-project", tags=["tree"])


def get_tree_service() -> TreeService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("TreeService not initialized")


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, TreeValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RowNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=503, detail=str(e))


def _split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated query param into a list, or None."""
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


@router.post("/tree")
async def get_tree(
    query: TreeQuery,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.get_tree(query)
    except StoreError as e:
        raise _http_error(e)


@router.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.create_project(request)
    except (TreeValidationError, StoreError) as e:
        raise _http_error(e)


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: CreateProductRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.create_product(request)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    request: CreateTaskRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.create_task(request)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


@router.patch("/rows/{row_type}/{row_id}")
async def update_row(
    row_type: str,
    row_id: int,
    request: UpdateRowRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.update_row(row_type, row_id, request)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


@router.delete("/rows/{row_type}/{row_id}")
async def delete_row(
    row_type: str,
    row_id: int,
    q: str = Query(""),
    status_filter: str | None = Query(None, alias="status"),
    assignee: str | None = Query(None),
    include_empty: bool = Query(False),
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    """Cascading delete; the query string carries the tree view to return."""
    view = TreeQuery(
        q=q,
        status=_split_csv(status_filter),
        assignee=_split_csv(assignee),
        include_empty=include_empty,
    )
    try:
        return await service.delete_row(row_type, row_id, view)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


# -- Task steps --


@router.post("/task-steps")
async def list_task_steps(
    request: TaskStepsRequest,
    service: TreeService = Depends(get_tree_service),
) -> list[TaskStepResponse]:
    try:
        return await service.list_task_steps(request.task_id)
    except (RowNotFoundError, StoreError) as e:
        raise _http_error(e)


@router.post("/tasks/{task_id}/steps", status_code=status.HTTP_201_CREATED)
async def create_task_step(
    task_id: int,
    request: CreateTaskStepRequest,
    service: TreeService = Depends(get_tree_service),
) -> TaskStepResponse:
    try:
        return await service.create_task_step(task_id, request)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


@router.patch("/task-steps/{step_id}")
async def update_task_step(
    step_id: int,
    request: PatchTaskStepRequest,
    service: TreeService = Depends(get_tree_service),
) -> TaskStepResponse:
    try:
        return await service.update_task_step_status(step_id, request.status)
    except (TreeValidationError, RowNotFoundError, StoreError) as e:
        raise _http_error(e)


# -- Statuses and users --


@router.get("/statuses")
async def list_statuses(
    service: TreeService = Depends(get_tree_service),
) -> list[StatusResponse]:
    try:
        return await service.list_statuses()
    except StoreError as e:
        raise _http_error(e)


@router.post("/statuses", status_code=status.HTTP_201_CREATED)
async def create_status(
    request: CreateStatusRequest,
    service: TreeService = Depends(get_tree_service),
) -> StatusResponse:
    try:
        return await service.create_status(request)
    except (TreeValidationError, StoreError) as e:
        raise _http_error(e)


@router.get("/users")
async def list_users(
    service: TreeService = Depends(get_tree_service),
) -> list[UserResponse]:
    try:
        return await service.list_users()
    except StoreError as e:
        raise _http_error(e)


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    service: TreeService = Depends(get_tree_service),
) -> UserResponse:
    try:
        return await service.create_user(request)
    except (TreeValidationError, StoreError) as e:
        raise _http_error(e)
