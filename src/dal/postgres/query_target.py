import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import asyncpg

from dal.connection_url import ConnectionTarget
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)


class PostgresQueryTargetDatabase:
    """PostgreSQL query-target database using an asyncpg pool."""

    _pool: Optional[asyncpg.Pool] = None

    @classmethod
    async def init(
        cls, target: ConnectionTarget, min_size: int = 1, max_size: int = 10
    ) -> None:
        """Create the asyncpg pool for the target database."""
        if cls._pool is not None:
            return
        cls._pool = await asyncpg.create_pool(
            dsn=target.dsn,
            min_size=min_size,
            max_size=max_size,
        )
        logger.info("postgres_query_target_initialized target=%s", target.redacted())

    @classmethod
    async def close(cls) -> None:
        """Close the asyncpg pool."""
        if cls._pool is not None:
            await cls._pool.close()
            cls._pool = None

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a pooled PostgreSQL connection wrapper."""
        if cls._pool is None:
            raise RuntimeError("Postgres pool not initialized. Call init() first.")
        async with cls._pool.acquire() as conn:
            yield _PostgresConnection(conn)


class _PostgresConnection:
    """Thin adapter over asyncpg matching the SQLite/MySQL wrappers."""

    provider = "postgres"
    # Generated keys come back through RETURNING.
    last_insert_id: Optional[int] = None

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def execute(self, sql: str, *params: Any) -> str:
        return await trace_query_operation(
            "dal.query.execute",
            provider="postgres",
            sql=sql,
            operation=self._conn.execute(sql, *params),
        )

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async def _run():
            rows = await self._conn.fetch(sql, *params)
            return [dict(row) for row in rows]

        return await trace_query_operation(
            "dal.query.execute", provider="postgres", sql=sql, operation=_run()
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
        """Run the enclosed statements in an asyncpg transaction."""
        async with self._conn.transaction():
            yield self

    @asynccontextmanager
    async def snapshot(self):
        """Run the enclosed reads against one repeatable-read snapshot."""
        async with self._conn.transaction(isolation="repeatable_read", readonly=True):
            yield self

    async def cancel(self) -> None:
        """No-op: asyncpg sends a server-side cancel when the awaiting task is cancelled."""
        return None
