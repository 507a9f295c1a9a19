"""Qualifying task records: tasks joined with their full ancestry, filtered.

A keyword is matched against every level of the join at once (project name,
product name, task title, status name, assignee name). A hit on a project or
product therefore qualifies all of its tasks. Status and assignee filters are
ANDed on top and narrow that set at the task level.
"""

import logging
from dataclasses import dataclass

from taskboard.db.connection import Database
from taskboard.repositories import statuses as status_repo
from taskboard.repositories import users as user_repo
from taskboard.tree.filters import FilterValue, split_filter_values
from taskboard.utils.sql import folded_like, like_pattern, placeholders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRecord:
    task_id: int
    task_title: str
    status_id: int | None
    status_name: str | None
    status_color: str | None
    assignee_user_id: int | None
    assignee_name: str | None
    task_created_by: str
    task_created_at: str
    task_updated_at: str
    product_id: int
    product_name: str
    product_created_by: str
    product_created_at: str
    product_updated_at: str
    project_id: int
    project_name: str
    project_owner_id: str
    project_created_at: str
    project_updated_at: str


_TASK_RECORDS_SQL = """
    SELECT
        t.id AS task_id,
        t.title AS task_title,
        t.status_id,
        s.name AS status_name,
        s.color AS status_color,
        t.assignee_user_id,
        u.username AS assignee_name,
        t.created_by AS task_created_by,
        t.created_at AS task_created_at,
        t.updated_at AS task_updated_at,
        p.id AS product_id,
        p.name AS product_name,
        p.created_by AS product_created_by,
        p.created_at AS product_created_at,
        p.updated_at AS product_updated_at,
        pr.id AS project_id,
        pr.name AS project_name,
        pr.owner_id AS project_owner_id,
        pr.created_at AS project_created_at,
        pr.updated_at AS project_updated_at
    FROM tasks t
    JOIN products p ON p.id = t.product_id
    JOIN projects pr ON pr.id = p.project_id
    LEFT JOIN statuses s ON s.id = t.status_id
    LEFT JOIN users u ON u.id = t.assignee_user_id
    {where}
    ORDER BY
        pr.created_at ASC, pr.id ASC,
        p.created_at ASC, p.id ASC,
        t.created_at ASC, t.id ASC
"""

_KEYWORD_COLUMNS = ("pr.name", "p.name", "t.title", "s.name", "u.username")


class TaskRecordResolver:
    """Turns a keyword plus status/assignee filters into ordered task records."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def resolve(
        self,
        keyword: str,
        status_filters: list[FilterValue],
        assignee_filters: list[FilterValue],
    ) -> list[TaskRecord]:
        clauses: list[str] = []
        params: list[str | int] = []

        if status_filters:
            status_ids = await self._resolve_status_ids(status_filters)
            if not status_ids:
                logger.debug("Status filters %r match no status", status_filters)
                return []
            clauses.append(f"t.status_id IN ({placeholders(status_ids)})")
            params.extend(status_ids)

        if assignee_filters:
            user_ids = await self._resolve_user_ids(assignee_filters)
            if not user_ids:
                logger.debug("Assignee filters %r match no user", assignee_filters)
                return []
            clauses.append(f"t.assignee_user_id IN ({placeholders(user_ids)})")
            params.extend(user_ids)

        keyword = keyword.strip()
        if keyword:
            pattern = like_pattern(keyword)
            matches = " OR ".join(folded_like(col) for col in _KEYWORD_COLUMNS)
            clauses.append(f"({matches})")
            params.extend([pattern] * len(_KEYWORD_COLUMNS))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self._db.fetchall(_TASK_RECORDS_SQL.format(where=where), tuple(params))
        logger.debug("Resolved %d task records for keyword %r", len(rows), keyword)
        return [TaskRecord(**dict(row)) for row in rows]

    async def _resolve_status_ids(self, values: list[FilterValue]) -> list[int]:
        names, ids = split_filter_values(values)
        resolved = await status_repo.find_status_ids_by_names(self._db, names)
        return _merge_ids(ids, resolved)

    async def _resolve_user_ids(self, values: list[FilterValue]) -> list[int]:
        names, ids = split_filter_values(values)
        resolved = await user_repo.find_user_ids_by_names(self._db, names)
        return _merge_ids(ids, resolved)


def _merge_ids(*groups: list[int]) -> list[int]:
    merged: list[int] = []
    for group in groups:
        for value in group:
            if value not in merged:
                merged.append(value)
    return merged
