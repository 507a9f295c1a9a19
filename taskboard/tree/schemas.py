"""Request and response schemas for the project tree endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

RowType = Literal["project", "product", "task"]

# -- Requests --


class TreeQuery(BaseModel):
    """View parameters for a tree read.

    ``status`` and ``assignee`` take display names or numeric ids, as a list or
    a comma-separated string.
    """

    q: str = ""
    status: list[str | int] | str | None = None
    assignee: list[str | int] | str | None = None
    include_empty: bool = False


class CreateProjectRequest(TreeQuery):
    name: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)


class CreateProductRequest(TreeQuery):
    project_id: int
    name: str = Field(min_length=1)
    created_by: str = Field(min_length=1)


class CreateTaskRequest(TreeQuery):
    product_id: int
    title: str = Field(min_length=1)
    current_status: str | int | None = None
    created_by: str = Field(min_length=1)
    assignee_id: int | None = None


class UpdateRowRequest(TreeQuery):
    """Fields to change on a row. Only fields present in the request body are written.

    Projects and products accept ``name``. Tasks accept ``name`` (or ``title``),
    ``current_status`` and ``assignee_id``; an explicit ``"assignee_id": null``
    removes the assignee.
    """

    name: str | None = None
    title: str | None = None
    current_status: str | int | None = None
    assignee_id: int | None = None


class TaskStepsRequest(BaseModel):
    task_id: int


class CreateTaskStepRequest(BaseModel):
    content: str = Field(min_length=1)
    created_by: str = Field(min_length=1)
    assignee_id: int | None = None
    status: str | int | None = None


class PatchTaskStepRequest(BaseModel):
    status: str | int | None


class CreateStatusRequest(BaseModel):
    name: str = Field(min_length=1)
    color: str = "#e2e8f0"


class CreateUserRequest(BaseModel):
    mail: str = Field(min_length=3)
    username: str = Field(min_length=1)


# -- Responses --


class TreeRow(BaseModel):
    row_type: RowType
    id: int
    parent_id: int | None = None
    level: int
    name: str
    status: str | None = None
    status_id: int | None = None
    status_color: str | None = None
    assignee_id: int | None = None
    assignee_name: str | None = None
    created_at: str
    updated_at: str
    has_children: bool = False


class TreeResponse(BaseModel):
    rows: list[TreeRow]
    task_count: int


class TaskStepResponse(BaseModel):
    id: int
    task_id: int
    content: str
    status: str | None = None
    status_id: int | None = None
    status_color: str | None = None
    assignee_id: int | None = None
    created_by: str
    created_at: str


class StatusResponse(BaseModel):
    id: int
    name: str
    color: str


class UserResponse(BaseModel):
    id: int
    mail: str
    username: str
    created_at: str
