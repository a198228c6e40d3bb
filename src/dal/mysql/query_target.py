import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import aiomysql
from pymysql.constants import CLIENT

from dal.connection_url import ConnectionTarget
from dal.mysql.param_translation import translate_postgres_params_to_mysql
from dal.tracing import trace_query_operation
from dal.util.execute_status import format_execute_status

logger = logging.getLogger(__name__)


class MysqlQueryTargetDatabase:
    """MySQL query-target database using aiomysql."""

    _pool: Optional[aiomysql.Pool] = None

    @classmethod
    async def init(cls, target: ConnectionTarget, max_size: int = 10) -> None:
        """Create the aiomysql pool for the target database."""
        if cls._pool is not None:
            return
        missing = [
            name
            for name, value in {"host": target.host, "user": target.user}.items()
            if not value
        ]
        if missing:
            raise ValueError(f"MySQL connection string missing: {', '.join(missing)}.")
        cls._pool = await aiomysql.create_pool(
            db=target.database,
            maxsize=max_size,
            autocommit=True,
            cursorclass=aiomysql.DictCursor,
            # UPDATE reports matched rows instead of changed rows.
            client_flag=CLIENT.FOUND_ROWS,
            **target.driver_kwargs(),
        )
        logger.info("mysql_query_target_initialized target=%s", target.redacted())

    @classmethod
    async def close(cls) -> None:
        """Close MySQL resources."""
        if cls._pool is not None:
            cls._pool.close()
            await cls._pool.wait_closed()
            cls._pool = None

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a pooled MySQL connection wrapper."""
        if cls._pool is None:
            raise RuntimeError("MySQL pool not initialized. Call init() first.")

        async with cls._pool.acquire() as conn:
            yield _MysqlConnection(conn)


class _MysqlConnection:
    """Adapter providing asyncpg-like helpers over aiomysql."""

    provider = "mysql"

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn
        self._last_insert_id: Optional[int] = None

    @property
    def last_insert_id(self) -> Optional[int]:
        """First id generated by the most recent INSERT (MySQL LAST_INSERT_ID semantics)."""
        return self._last_insert_id

    async def execute(self, sql: str, *params: Any) -> str:
        sql, bound_params = translate_postgres_params_to_mysql(sql, list(params))

        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, bound_params)
                self._last_insert_id = cursor.lastrowid
                return format_execute_status(sql, cursor.rowcount)

        return await trace_query_operation(
            "dal.query.execute", provider="mysql", sql=sql, operation=_run()
        )

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        sql, bound_params = translate_postgres_params_to_mysql(sql, list(params))

        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, bound_params)
                rows = await cursor.fetchall()
                return [dict(row) for row in rows]

        return await trace_query_operation(
            "dal.query.execute", provider="mysql", sql=sql, operation=_run()
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
        """Run the enclosed statements atomically on this connection."""
        await self._conn.begin()
        try:
            yield self
        except BaseException:
            # A cancelled statement closes the connection; nothing to roll back.
            if not self._conn.closed:
                await self._conn.rollback()
            raise
        await self._conn.commit()

    @asynccontextmanager
    async def snapshot(self):
        """Run the enclosed reads against one consistent InnoDB snapshot."""
        async with self._conn.cursor() as cursor:
            await cursor.execute("START TRANSACTION WITH CONSISTENT SNAPSHOT, READ ONLY")
        try:
            yield self
        except BaseException:
            if not self._conn.closed:
                await self._conn.rollback()
            raise
        await self._conn.commit()

    async def cancel(self) -> None:
        """Drop the connection so the pool discards it instead of reusing a busy socket."""
        self._conn.close()
