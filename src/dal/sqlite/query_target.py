import asyncio
import inspect
import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import aiosqlite

from dal.sqlite.param_translation import translate_postgres_params_to_sqlite
from dal.tracing import trace_query_operation
from dal.util.execute_status import format_execute_status

logger = logging.getLogger(__name__)

_SHARED_MEMORY_URI = "file:dbrest_memdb?mode=memory&cache=shared"


class SqliteQueryTargetDatabase:
    """SQLite query-target database (one aiosqlite connection per request)."""

    _db_path: Optional[str] = None
    _uri: bool = False
    # Holds a shared in-memory database open for the lifetime of the process.
    _keeper: Optional[aiosqlite.Connection] = None

    @classmethod
    async def init(cls, db_path: Optional[str]) -> None:
        """Initialize SQLite query-target config."""
        await cls.close()
        if not db_path or db_path == ":memory:":
            cls._db_path = _SHARED_MEMORY_URI
            cls._uri = True
            cls._keeper = await aiosqlite.connect(cls._db_path, uri=True)
        else:
            cls._db_path = db_path
            cls._uri = db_path.startswith("file:")
        logger.info("sqlite_query_target_initialized path=%s", db_path or ":memory:")

    @classmethod
    async def close(cls) -> None:
        """Close SQLite resources."""
        if cls._keeper is not None:
            await cls._keeper.close()
            cls._keeper = None
        cls._db_path = None

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a SQLite connection wrapper."""
        if cls._db_path is None:
            raise RuntimeError("SQLite query target not initialized. Call init() first.")

        conn = await aiosqlite.connect(cls._db_path, uri=cls._uri, isolation_level=None)
        conn.row_factory = sqlite3.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield _SqliteConnection(conn)
        finally:
            await conn.close()


class _SqliteConnection:
    """Adapter providing asyncpg-like helpers over aiosqlite."""

    provider = "sqlite"

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        self._last_insert_id: Optional[int] = None

    @property
    def last_insert_id(self) -> Optional[int]:
        """Row id generated by the most recent INSERT on this connection."""
        return self._last_insert_id

    async def execute(self, sql: str, *params: Any) -> str:
        sql, bound_params = translate_postgres_params_to_sqlite(sql, list(params))

        async def _run():
            cursor = await self._conn.execute(sql, bound_params)
            try:
                self._last_insert_id = cursor.lastrowid
                return format_execute_status(sql, cursor.rowcount)
            finally:
                await cursor.close()

        return await trace_query_operation(
            "dal.query.execute", provider="sqlite", sql=sql, operation=_run()
        )

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        sql, bound_params = translate_postgres_params_to_sqlite(sql, list(params))

        async def _run():
            cursor = await self._conn.execute(sql, bound_params)
            try:
                rows = await cursor.fetchall()
                self._last_insert_id = cursor.lastrowid
                return [dict(row) for row in rows]
            finally:
                await cursor.close()

        return await trace_query_operation(
            "dal.query.execute", provider="sqlite", sql=sql, operation=_run()
        )

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *params: Any) -> Any:
        row = await self.fetchrow(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))

    @asynccontextmanager
    async def transaction(self):
        """Run the enclosed statements atomically; roll back on any exception."""
        await self._conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            # Shielded so a cancelled request still releases its write lock.
            await asyncio.shield(self._conn.execute("ROLLBACK"))
            raise
        await self._conn.execute("COMMIT")

    @asynccontextmanager
    async def snapshot(self):
        """Run the enclosed reads inside one deferred transaction so they share a snapshot."""
        async with self.transaction():
            yield self

    async def cancel(self) -> None:
        """Best-effort cancellation for in-flight queries."""
        interrupt = getattr(self._conn, "interrupt", None)
        if callable(interrupt):
            result = interrupt()
            if inspect.isawaitable(result):
                await result
