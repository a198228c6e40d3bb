"""Publish-once registry of the tables served by the gateway.

The registry is built in full during startup and then published as a
read-only mapping. Request handlers only ever read it, so the read path
takes no locks.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from opentelemetry import trace

from common.errors import NotFoundError, SchemaError
from common.interfaces.schema_introspector import SchemaIntrospector
from schema import TableDef, UnsupportedTableError

logger = logging.getLogger(__name__)


class TableRegistry:
    """Read-only name -> TableDef lookup."""

    def __init__(self, tables: Iterable[TableDef]) -> None:
        """Index the given tables by name."""
        by_name = {}
        for table in tables:
            if table.name in by_name:
                raise SchemaError(f"Duplicate table name '{table.name}'")
            by_name[table.name] = table
        self._tables: Mapping[str, TableDef] = MappingProxyType(by_name)
        self._folded: Mapping[str, List[str]] = MappingProxyType(_fold_names(by_name))

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table_name: str) -> bool:
        return self.find(table_name) is not None

    def find(self, table_name: str) -> Optional[TableDef]:
        """Resolve a table by exact name, then case-insensitively."""
        table = self._tables.get(table_name)
        if table is not None:
            return table
        candidates = self._folded.get(table_name.lower(), [])
        if len(candidates) == 1:
            return self._tables[candidates[0]]
        return None

    def get(self, table_name: str) -> TableDef:
        """Return the table or raise NotFoundError."""
        table = self.find(table_name)
        if table is None:
            raise NotFoundError(f"Table '{table_name}' not found")
        return table

    def all(self) -> Tuple[TableDef, ...]:
        """All tables ordered by name."""
        return tuple(self._tables[name] for name in sorted(self._tables))


def _fold_names(by_name: Mapping[str, TableDef]) -> dict:
    folded: dict = {}
    for name in by_name:
        folded.setdefault(name.lower(), []).append(name)
    return folded


async def introspect_tables(introspector: SchemaIntrospector) -> List[TableDef]:
    """Read every servable table from the database catalog.

    Tables the engine cannot serve (no primary key) are skipped with a
    warning. Any other failure to read metadata raises SchemaError.
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span("schema.introspect") as span:
        span.set_attribute("db.provider", getattr(introspector, "provider", "unknown"))
        try:
            table_names = await introspector.list_table_names()
        except Exception as exc:
            logger.error("schema_introspection_failed stage=list_tables error=%s", exc)
            raise SchemaError(f"Unable to list tables: {exc}") from exc

        tables: List[TableDef] = []
        for table_name in table_names:
            try:
                tables.append(await introspector.get_table_def(table_name))
            except UnsupportedTableError as exc:
                logger.warning(
                    "schema_table_skipped table=%s reason=%s", exc.table_name, exc.reason
                )
            except Exception as exc:
                logger.error(
                    "schema_introspection_failed stage=describe table=%s error=%s",
                    table_name,
                    exc,
                )
                raise SchemaError(f"Unable to read metadata for table '{table_name}'") from exc

        span.set_attribute("schema.table_count", len(tables))
        return tables


_registry: Optional[TableRegistry] = None
_registry_lock: Optional[asyncio.Lock] = None


async def load_table_registry(
    introspector: Optional[SchemaIntrospector] = None,
) -> TableRegistry:
    """Introspect and publish the registry once; later calls return the published one."""
    global _registry, _registry_lock

    if _registry is not None:
        return _registry
    if _registry_lock is None:
        _registry_lock = asyncio.Lock()

    async with _registry_lock:
        if _registry is None:
            if introspector is None:
                from dal.database import Database

                introspector = Database.get_schema_introspector()
            registry = TableRegistry(await introspect_tables(introspector))
            _registry = registry
            logger.info("schema_registry_published tables=%d", len(registry))
    return _registry


def get_table_registry() -> TableRegistry:
    """Return the published registry."""
    if _registry is None:
        raise RuntimeError("Table registry not loaded. Call load_table_registry() first.")
    return _registry


def reset_table_registry() -> None:
    """Drop the published registry (tests only)."""
    global _registry, _registry_lock
    _registry = None
    _registry_lock = None
