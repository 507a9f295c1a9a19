"""Tree builder: flat task records in, ordered three-level tree rows out.

Every node goes through ``TreeAccumulator.upsert``, which inserts a node the
first time its (row_type, id) is seen and ignores it afterwards. Child order
under each parent is first-seen order, which follows the ORDER BY of the
record query. The include-empty fill-in runs after the main pass on the same
accumulator, so it can only add nodes, never replace them.

``has_children`` is decided at emission from the children collected in this
build, so it always agrees with the rows returned.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from taskboard.tree.resolver import TaskRecord
from taskboard.tree.schemas import RowType, TreeResponse, TreeRow

logger = logging.getLogger(__name__)

_LEVELS: dict[RowType, int] = {"project": 0, "product": 1, "task": 2}


class TreeAccumulator:
    """Request-local node maps plus per-parent child order."""

    def __init__(self) -> None:
        self._nodes: dict[RowType, dict[int, TreeRow]] = {kind: {} for kind in _LEVELS}
        self._children: dict[RowType, dict[int | None, list[int]]] = {
            kind: defaultdict(list) for kind in _LEVELS
        }

    def upsert(self, row: TreeRow) -> bool:
        """Insert ``row`` unless its id is already known. Returns True if inserted."""
        nodes = self._nodes[row.row_type]
        if row.id in nodes:
            return False
        nodes[row.id] = row
        self._children[row.row_type][row.parent_id].append(row.id)
        return True

    @property
    def task_count(self) -> int:
        return len(self._nodes["task"])

    def emit(self) -> list[TreeRow]:
        """Walk projects, then their products, then their tasks, in recorded order."""
        rows: list[TreeRow] = []
        for project_id in self._children["project"].get(None, []):
            project = self._nodes["project"].get(project_id)
            if project is None:
                _warn_missing("project", project_id, None)
                continue
            product_ids = self._children["product"].get(project_id, [])
            rows.append(project.model_copy(update={"has_children": len(product_ids) > 0}))

            for product_id in product_ids:
                product = self._nodes["product"].get(product_id)
                if product is None:
                    _warn_missing("product", product_id, project_id)
                    continue
                task_ids = self._children["task"].get(product_id, [])
                rows.append(product.model_copy(update={"has_children": len(task_ids) > 0}))

                for task_id in task_ids:
                    task = self._nodes["task"].get(task_id)
                    if task is None:
                        _warn_missing("task", task_id, product_id)
                        continue
                    rows.append(task)
        return rows


def build_tree(
    task_records: Iterable[TaskRecord],
    empty_projects: Iterable[dict] | None = None,
    empty_products: Iterable[dict] | None = None,
) -> TreeResponse:
    """Assemble tree rows from qualifying task records.

    ``empty_projects`` and ``empty_products`` are the include-empty fill-in:
    project rows, and product rows joined with their project's columns (as
    returned by the project and product repositories). ``None`` skips that
    half of the fill-in.
    """
    acc = TreeAccumulator()

    for record in task_records:
        acc.upsert(_project_row_from_record(record))
        acc.upsert(_product_row_from_record(record))
        acc.upsert(_task_row_from_record(record))

    if empty_projects is not None:
        for project in empty_projects:
            acc.upsert(_project_row(project))

    if empty_products is not None:
        for product in empty_products:
            acc.upsert(
                TreeRow(
                    row_type="project",
                    id=product["project_id"],
                    level=_LEVELS["project"],
                    name=product["project_name"],
                    created_at=product["project_created_at"],
                    updated_at=product["project_updated_at"],
                )
            )
            acc.upsert(_product_row(product))

    rows = acc.emit()
    logger.debug("Built tree: %d rows, %d tasks", len(rows), acc.task_count)
    return TreeResponse(rows=rows, task_count=acc.task_count)


def _project_row(project: dict) -> TreeRow:
    return TreeRow(
        row_type="project",
        id=project["id"],
        level=_LEVELS["project"],
        name=project["name"],
        created_at=project["created_at"],
        updated_at=project["updated_at"],
    )


def _product_row(product: dict) -> TreeRow:
    return TreeRow(
        row_type="product",
        id=product["id"],
        parent_id=product["project_id"],
        level=_LEVELS["product"],
        name=product["name"],
        created_at=product["created_at"],
        updated_at=product["updated_at"],
    )


def _project_row_from_record(record: TaskRecord) -> TreeRow:
    return TreeRow(
        row_type="project",
        id=record.project_id,
        level=_LEVELS["project"],
        name=record.project_name,
        created_at=record.project_created_at,
        updated_at=record.project_updated_at,
    )


def _product_row_from_record(record: TaskRecord) -> TreeRow:
    return TreeRow(
        row_type="product",
        id=record.product_id,
        parent_id=record.project_id,
        level=_LEVELS["product"],
        name=record.product_name,
        created_at=record.product_created_at,
        updated_at=record.product_updated_at,
    )


def _task_row_from_record(record: TaskRecord) -> TreeRow:
    return TreeRow(
        row_type="task",
        id=record.task_id,
        parent_id=record.product_id,
        level=_LEVELS["task"],
        name=record.task_title,
        status=record.status_name,
        status_id=record.status_id,
        status_color=record.status_color,
        assignee_id=record.assignee_user_id,
        assignee_name=record.assignee_name,
        created_at=record.task_created_at,
        updated_at=record.task_updated_at,
    )


def _warn_missing(row_type: str, row_id: int, parent_id: int | None) -> None:
    logger.warning(
        "Tree emission: %s %s recorded under %s has no node, skipping",
        row_type, row_id, parent_id,
    )
