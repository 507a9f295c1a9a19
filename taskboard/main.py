"""Taskboard FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.db.connection import Database
from taskboard.db.seed import seed_statuses
from taskboard.tree.router import get_tree_service
from taskboard.tree.router import router as tree_router
from taskboard.tree.service import TreeService

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    # Load .env from the project root (next to pyproject.toml)
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    logging.basicConfig(
        level=os.environ.get("TASKBOARD_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = await Database.connect(os.environ.get("TASKBOARD_DB_PATH", "taskboard.db"))

    if os.environ.get("TASKBOARD_SEED_STATUSES", "1") != "0":
        await seed_statuses(db)

    service = TreeService(db)
    app.dependency_overrides[get_tree_service] = lambda: service

    app.state.db = db
    yield

    await db.close()


def _cors_origins() -> list[str]:
    raw = os.environ.get("TASKBOARD_CORS_ORIGINS", "http://localhost:5173")
    return [o.strip() for o in raw.split(",") if o.strip()]


app = FastAPI(
    title="Taskboard",
    description="Project / product / task tree for internal operations tracking",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tree_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}
