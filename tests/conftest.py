"""Shared pytest fixtures for Taskboard tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from taskboard.db.connection import Database
from taskboard.main import app
from taskboard.tree.mutations import MutationEngine
from taskboard.tree.router import get_tree_service
from taskboard.tree.service import TreeService


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def service(db):
    """TreeService backed by in-memory database."""
    return TreeService(db)


@pytest.fixture
async def engine(db):
    """MutationEngine backed by in-memory database."""
    return MutationEngine(db)


@pytest.fixture
async def client(db):
    """Async test client with in-memory DB wired into the app."""
    service = TreeService(db)
    app.dependency_overrides[get_tree_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
