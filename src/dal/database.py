import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from common.config.env import get_env_int, get_env_str
from common.interfaces import SchemaIntrospector
from dal.capabilities import BackendCapabilities, capabilities_for_provider
from dal.connection_url import ConnectionTarget, parse_connection_url

logger = logging.getLogger(__name__)


class Database:
    """Routes connections to the query-target provider named by the connection string."""

    _target: Optional[ConnectionTarget] = None
    _query_target: Optional[Any] = None
    _query_target_provider: Optional[str] = None
    _query_target_capabilities: Optional[BackendCapabilities] = None
    _schema_introspector: Optional[SchemaIntrospector] = None

    @classmethod
    async def init(cls, url: Optional[str] = None) -> None:
        """Initialize the query target from ``url`` or DATABASE_URL."""
        url = url or get_env_str("DATABASE_URL")
        if not url:
            raise ValueError("No database configured. Pass a connection string or set DATABASE_URL.")

        target = parse_connection_url(url)
        pool_size = get_env_int("DB_POOL_MAX_SIZE", 10)

        if target.provider == "sqlite":
            from dal.sqlite import SqliteQueryTargetDatabase, SqliteSchemaIntrospector

            await SqliteQueryTargetDatabase.init(target.database)
            query_target, introspector = SqliteQueryTargetDatabase, SqliteSchemaIntrospector()
        elif target.provider == "postgres":
            from dal.postgres import PostgresQueryTargetDatabase, PostgresSchemaIntrospector

            await PostgresQueryTargetDatabase.init(target, max_size=pool_size)
            query_target, introspector = PostgresQueryTargetDatabase, PostgresSchemaIntrospector()
        elif target.provider == "mysql":
            from dal.mysql import MysqlQueryTargetDatabase, MysqlSchemaIntrospector

            await MysqlQueryTargetDatabase.init(target, max_size=pool_size)
            query_target, introspector = MysqlQueryTargetDatabase, MysqlSchemaIntrospector()
        else:
            raise ValueError(f"Unsupported query-target provider: {target.provider}")

        cls._target = target
        cls._query_target = query_target
        cls._query_target_provider = target.provider
        cls._query_target_capabilities = capabilities_for_provider(target.provider)
        cls._schema_introspector = introspector
        logger.info("database_initialized provider=%s target=%s", target.provider, target.redacted())

    @classmethod
    async def close(cls) -> None:
        """Close the active query target."""
        if cls._query_target is not None:
            await cls._query_target.close()
        cls._target = None
        cls._query_target = None
        cls._query_target_provider = None
        cls._query_target_capabilities = None
        cls._schema_introspector = None

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a provider connection wrapper for the duration of the block."""
        if cls._query_target is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        async with cls._query_target.get_connection() as conn:
            yield conn

    @classmethod
    def get_query_target_provider(cls) -> str:
        """Return the canonical provider id of the active query target."""
        if cls._query_target_provider is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        return cls._query_target_provider

    @classmethod
    def get_query_target_capabilities(cls) -> BackendCapabilities:
        """Return dialect capabilities of the active query target."""
        if cls._query_target_capabilities is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        return cls._query_target_capabilities

    @classmethod
    def get_schema_introspector(cls) -> SchemaIntrospector:
        """Return the schema introspector for the active query target."""
        if cls._schema_introspector is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        return cls._schema_introspector
