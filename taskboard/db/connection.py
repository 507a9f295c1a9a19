"""Async SQLite connection wrapper with transactions, health check and reconnect."""

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from taskboard.db.schema import SCHEMA_SQL, run_migrations
from taskboard.utils.sql import casefold

logger = logging.getLogger(__name__)


class Transaction:
    """Statement executor bound to an open transaction. Never commits on its own."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        return await self._conn.execute(sql, params or ())

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        cursor = await self._conn.execute(sql, params or ())
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        cursor = await self._conn.execute(sql, params or ())
        return list(await cursor.fetchall())


class Database:
    """Single managed aiosqlite handle shared by the services of one app.

    Writes (``execute`` and ``transaction``) are serialised on the handle so a
    transaction in flight is never committed by an unrelated statement. Reads
    go straight to the connection.
    """

    def __init__(self, connection: aiosqlite.Connection, path: str = ":memory:") -> None:
        self._conn = connection
        self._path = path
        self._write_lock = asyncio.Lock()

    @classmethod
    async def connect(cls, path: str = "taskboard.db") -> "Database":
        """Open a connection, apply pragmas, create the schema and run migrations."""
        conn = await cls._open(path)
        db = cls(conn, path)
        await db._ensure_schema()
        return db

    @staticmethod
    async def _open(path: str) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        await conn.create_function("casefold", 1, casefold, deterministic=True)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.execute("PRAGMA busy_timeout=5000")
        return conn

    async def _ensure_schema(self) -> None:
        """Create tables if they don't exist, then apply pending migrations. Idempotent."""
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        await run_migrations(self)

    @property
    def path(self) -> str:
        return self._path

    async def ping(self) -> bool:
        """True if the handle can still run a statement."""
        try:
            await self._conn.execute("SELECT 1")
        except (sqlite3.Error, ValueError):
            return False
        return True

    async def ensure_connected(self) -> None:
        """Reconnect if the handle went stale. No-op on a healthy connection.

        An in-memory database comes back empty after a reconnect.
        """
        if await self.ping():
            return
        logger.warning("Stale database connection to %s, reconnecting", self._path)
        try:
            await self._conn.close()
        except (sqlite3.Error, ValueError) as e:
            logger.debug("Closing stale connection failed: %s", e)
        try:
            self._conn = await self._open(self._path)
            await self._ensure_schema()
        except sqlite3.Error as e:
            raise StoreError(f"Reconnect to {self._path} failed: {e}") from e

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        """Execute a single SQL statement and commit."""
        async with self._write_lock:
            cursor = await self._conn.execute(sql, params or ())
            await self._conn.commit()
        return cursor

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        """Execute and return a single row. Store failures raise StoreError."""
        try:
            cursor = await self._conn.execute(sql, params or ())
            return await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        """Execute and return all rows. Store failures raise StoreError."""
        try:
            cursor = await self._conn.execute(sql, params or ())
            return list(await cursor.fetchall())
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Run the enclosed statements atomically.

        Commits when the block exits normally. Any exception rolls back; store
        errors are re-raised as StoreError, everything else unchanged.
        """
        await self.ensure_connected()
        async with self._write_lock:
            await self._conn.execute("BEGIN")
            try:
                yield Transaction(self._conn)
                await self._conn.commit()
            except sqlite3.Error as e:
                await self._conn.rollback()
                logger.warning("Transaction rolled back: %s", e)
                raise StoreError(str(e)) from e
            except BaseException:
                await self._conn.rollback()
                raise

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()


class StoreError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Store error: {message}")
