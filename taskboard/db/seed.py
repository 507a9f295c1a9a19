"""Default status seeding from default_statuses.yml."""

import logging
from pathlib import Path

import yaml

from taskboard.db.connection import Database
from taskboard.repositories import statuses as status_repo

logger = logging.getLogger(__name__)

DEFAULT_STATUSES_PATH = Path(__file__).parent.parent / "default_statuses.yml"


def load_default_statuses(path: Path = DEFAULT_STATUSES_PATH) -> list[dict]:
    """Read the status list from YAML. A missing file means no defaults."""
    if not path.exists():
        return []
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return data.get("statuses", [])


async def seed_statuses(db: Database, path: Path = DEFAULT_STATUSES_PATH) -> int:
    """Insert the default statuses if the table is empty. Returns how many were added."""
    row = await db.fetchone("SELECT COUNT(*) AS n FROM statuses")
    if row is not None and row["n"] > 0:
        return 0

    entries = load_default_statuses(path)
    async with db.transaction() as tx:
        for entry in entries:
            await status_repo.insert_status(
                tx, entry["name"], entry.get("color", status_repo.DEFAULT_STATUS_COLOR)
            )
    logger.info("Seeded %d default statuses", len(entries))
    return len(entries)
