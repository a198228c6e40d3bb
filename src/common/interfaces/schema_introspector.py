from typing import List, Protocol, runtime_checkable

from schema import TableDef


@runtime_checkable
class SchemaIntrospector(Protocol):
    """Protocol for introspecting database schema (tables, columns, constraints)."""

    provider: str

    async def list_table_names(self) -> List[str]:
        """List user table names, excluding system catalogs, ordered by name."""
        ...

    async def get_table_def(self, table_name: str) -> TableDef:
        """Get the full definition of a table (columns, keys, FKs).

        Raises UnsupportedTableError for tables the engine cannot serve.
        """
        ...
