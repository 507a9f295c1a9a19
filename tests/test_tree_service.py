"""Tests for TreeService: reads, writes followed by a fresh tree, row dispatch."""

import pytest

from taskboard.tree.mutations import RowNotFoundError, TreeValidationError
from taskboard.tree.schemas import (
    CreateProductRequest,
    CreateProjectRequest,
    CreateTaskRequest,
    CreateTaskStepRequest,
    TreeQuery,
    UpdateRowRequest,
)

from tests.fixtures import seed_alpha, seed_product, seed_project, seed_step, seed_user


def _shape(response):
    return [(r.row_type, r.id, r.has_children) for r in response.rows]


class TestScenario:
    async def test_include_empty_then_delete_product(self, db, service):
        """Alpha → Widget → Fix bug, then deleting Widget leaves an empty Alpha."""
        ids = await seed_alpha(db)

        tree = await service.get_tree(TreeQuery(include_empty=True))
        assert _shape(tree) == [
            ("project", ids["project_id"], True),
            ("product", ids["product_id"], True),
            ("task", ids["task_id"], False),
        ]
        assert tree.task_count == 1

        tree = await service.delete_row("product", ids["product_id"], TreeQuery(include_empty=True))
        assert _shape(tree) == [("project", ids["project_id"], False)]
        assert tree.task_count == 0


class TestGetTree:
    async def test_default_query_hides_empty_nodes(self, db, service):
        await seed_project(db, "Nothing here")
        tree = await service.get_tree()
        assert tree.rows == []
        assert tree.task_count == 0

    async def test_include_empty_shows_empty_nodes(self, db, service):
        project_id = await seed_project(db, "Nothing here")
        product_id = await seed_product(db, project_id, "Still nothing")
        tree = await service.get_tree(TreeQuery(include_empty=True))
        assert _shape(tree) == [("project", project_id, True), ("product", product_id, False)]

    async def test_include_empty_keyword_folds_non_ascii_case(self, db, service):
        project_id = await seed_project(db, "Ärger")
        product_id = await seed_product(db, project_id, "Übersicht")
        await seed_project(db, "Other")

        tree = await service.get_tree(TreeQuery(q="ärger", include_empty=True))
        assert [(r.row_type, r.id) for r in tree.rows] == [("project", project_id)]

        tree = await service.get_tree(TreeQuery(q="übersicht", include_empty=True))
        assert [(r.row_type, r.id) for r in tree.rows] == [
            ("project", project_id),
            ("product", product_id),
        ]

    async def test_keyword_with_include_empty_filters_empty_nodes_by_name(self, db, service):
        ids = await seed_alpha(db)
        await seed_project(db, "Unrelated")
        alpha_extra = await seed_product(db, ids["project_id"], "Spare")
        tree = await service.get_tree(TreeQuery(q="alpha", include_empty=True))
        assert [(r.row_type, r.id) for r in tree.rows] == [
            ("project", ids["project_id"]),
            ("product", ids["product_id"]),
            ("task", ids["task_id"]),
        ]
        assert alpha_extra not in [r.id for r in tree.rows if r.row_type == "product"]

    async def test_filters_accept_csv_strings(self, db, service):
        ids = await seed_alpha(db)
        user_id = await seed_user(db, "mei")
        await service.update_row(
            "task", ids["task_id"], UpdateRowRequest(assignee_id=user_id)
        )
        tree = await service.get_tree(TreeQuery(status="open,done", assignee=str(user_id)))
        assert tree.task_count == 1
        tree = await service.get_tree(TreeQuery(status="done"))
        assert tree.task_count == 0

    async def test_reconnects_before_reading(self, db, service):
        await db._conn.close()
        tree = await service.get_tree()
        assert tree.rows == []


class TestCreate:
    async def test_create_project_returns_tree_with_view(self, service):
        tree = await service.create_project(
            CreateProjectRequest(name="Alpha", owner_id="me", include_empty=True)
        )
        assert [(r.row_type, r.name) for r in tree.rows] == [("project", "Alpha")]

    async def test_create_without_include_empty_hides_new_project(self, service):
        tree = await service.create_project(CreateProjectRequest(name="Alpha", owner_id="me"))
        assert tree.rows == []

    async def test_create_chain(self, service):
        tree = await service.create_project(
            CreateProjectRequest(name="Alpha", owner_id="me", include_empty=True)
        )
        project_id = tree.rows[0].id
        tree = await service.create_product(
            CreateProductRequest(project_id=project_id, name="Widget", created_by="me",
                                 include_empty=True)
        )
        product_id = tree.rows[1].id
        tree = await service.create_task(
            CreateTaskRequest(product_id=product_id, title="Fix bug", current_status="open",
                              created_by="me")
        )
        assert [(r.row_type, r.name) for r in tree.rows] == [
            ("project", "Alpha"), ("product", "Widget"), ("task", "Fix bug"),
        ]
        assert tree.rows[2].status == "open"
        assert tree.task_count == 1

    async def test_create_product_missing_project(self, service):
        with pytest.raises(RowNotFoundError):
            await service.create_product(
                CreateProductRequest(project_id=9, name="Widget", created_by="me")
            )


class TestUpdateRow:
    async def test_rename_project(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.update_row(
            "project", ids["project_id"], UpdateRowRequest(name="Omega")
        )
        assert tree.rows[0].name == "Omega"

    async def test_rename_product(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.update_row(
            "product", ids["product_id"], UpdateRowRequest(name="Gizmo")
        )
        assert tree.rows[1].name == "Gizmo"

    async def test_project_rejects_task_fields(self, db, service):
        ids = await seed_alpha(db)
        with pytest.raises(TreeValidationError):
            await service.update_row(
                "project", ids["project_id"], UpdateRowRequest(current_status="done")
            )

    async def test_project_requires_name(self, db, service):
        ids = await seed_alpha(db)
        with pytest.raises(TreeValidationError):
            await service.update_row("project", ids["project_id"], UpdateRowRequest())

    async def test_task_status_only(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.update_row(
            "task", ids["task_id"], UpdateRowRequest(current_status="done")
        )
        task = tree.rows[2]
        assert task.status == "done"
        assert task.name == "Fix bug"
        assert task.assignee_id is None

    async def test_task_name_maps_to_title(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.update_row("task", ids["task_id"], UpdateRowRequest(name="Renamed"))
        assert tree.rows[2].name == "Renamed"
        assert tree.rows[2].status == "open"

    async def test_task_assignee_cleared_only_when_sent(self, db, service):
        ids = await seed_alpha(db)
        user_id = await seed_user(db, "mei")
        await service.update_row("task", ids["task_id"], UpdateRowRequest(assignee_id=user_id))

        tree = await service.update_row("task", ids["task_id"], UpdateRowRequest(title="Again"))
        assert tree.rows[2].assignee_id == user_id
        assert tree.rows[2].assignee_name == "mei"

        tree = await service.update_row("task", ids["task_id"], UpdateRowRequest(assignee_id=None))
        assert tree.rows[2].assignee_id is None

    async def test_view_fields_are_not_row_fields(self, db, service):
        """q/status/include_empty in an update body shape the returned tree only."""
        ids = await seed_alpha(db)
        tree = await service.update_row(
            "project", ids["project_id"], UpdateRowRequest(name="Omega", q="nomatch")
        )
        assert tree.rows == []

    async def test_unknown_row_type(self, service):
        with pytest.raises(TreeValidationError):
            await service.update_row("step", 1, UpdateRowRequest(name="x"))


class TestDeleteRow:
    async def test_delete_project(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.delete_row("project", ids["project_id"], TreeQuery(include_empty=True))
        assert tree.rows == []

    async def test_delete_task_keeps_parents_in_include_empty(self, db, service):
        ids = await seed_alpha(db)
        tree = await service.delete_row("task", ids["task_id"], TreeQuery(include_empty=True))
        assert _shape(tree) == [
            ("project", ids["project_id"], True),
            ("product", ids["product_id"], False),
        ]

    async def test_delete_unknown_type(self, service):
        with pytest.raises(TreeValidationError):
            await service.delete_row("folder", 1)

    async def test_deleted_ids_gone_from_every_read(self, db, service):
        ids = await seed_alpha(db)
        await service.delete_row("project", ids["project_id"])
        tree = await service.get_tree(TreeQuery(include_empty=True))
        assert all(r.id not in ids.values() for r in tree.rows)


class TestTaskSteps:
    async def test_list_steps_in_creation_order(self, db, service):
        task_id = (await seed_alpha(db))["task_id"]
        await seed_step(db, task_id, "first")
        await seed_step(db, task_id, "second")
        steps = await service.list_task_steps(task_id)
        assert [s.content for s in steps] == ["first", "second"]

    async def test_list_steps_missing_task(self, service):
        with pytest.raises(RowNotFoundError):
            await service.list_task_steps(404)

    async def test_create_and_update_step(self, db, service):
        task_id = (await seed_alpha(db))["task_id"]
        step = await service.create_task_step(
            task_id, CreateTaskStepRequest(content="Draft", created_by="me", status="open")
        )
        assert step.task_id == task_id
        assert step.status == "open"
        step = await service.update_task_step_status(step.id, "done")
        assert step.status == "done"
