from typing import List

from common.interfaces.schema_introspector import SchemaIntrospector
from dal.database import Database
from dal.type_normalization import normalize_column_kind
from schema import ColumnDef, ForeignKeyDef, TableDef, UnsupportedTableError


class SqliteSchemaIntrospector(SchemaIntrospector):
    """SQLite implementation of SchemaIntrospector using sqlite_master and PRAGMA."""

    provider = "sqlite"

    async def list_table_names(self) -> List[str]:
        """List user-defined tables in the SQLite database."""
        query = """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
            AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """
        async with Database.get_connection() as conn:
            rows = await conn.fetch(query)
        return [row["name"] for row in rows]

    async def get_table_def(self, table_name: str) -> TableDef:
        """Return the canonical table definition for a SQLite table."""
        safe_table = table_name.replace('"', '""')
        cols_query = f'PRAGMA table_info("{safe_table}")'
        fk_query = f'PRAGMA foreign_key_list("{safe_table}")'
        ddl_query = "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = $1"

        async with Database.get_connection() as conn:
            col_rows = await conn.fetch(cols_query)
            fk_rows = await conn.fetch(fk_query)
            ddl = await conn.fetchval(ddl_query, table_name)

        pk_rows = sorted((row for row in col_rows if row["pk"]), key=lambda row: row["pk"])
        if not pk_rows:
            raise UnsupportedTableError(table_name, "no primary key")

        # A lone INTEGER PRIMARY KEY aliases the rowid unless the table is WITHOUT ROWID.
        rowid_alias = (
            len(pk_rows) == 1
            and (pk_rows[0]["type"] or "").strip().upper() == "INTEGER"
            and "without rowid" not in (ddl or "").lower()
        )

        columns = tuple(
            ColumnDef(
                name=row["name"],
                kind=normalize_column_kind(row["type"], "sqlite"),
                declared_type=row["type"] or None,
                is_nullable=(row["notnull"] == 0 and not row["pk"]),
                is_primary_key=bool(row["pk"]),
                is_autoincrement=bool(row["pk"]) and rowid_alias,
                has_default=row["dflt_value"] is not None,
            )
            for row in col_rows
        )

        fks = tuple(
            ForeignKeyDef(
                column_name=row["from"],
                foreign_table_name=row["table"],
                foreign_column_name=row["to"],
            )
            for row in fk_rows
            # A NULL "to" references the parent's primary key implicitly.
            if row["to"] is not None
        )

        return TableDef(
            name=table_name,
            columns=columns,
            primary_key=tuple(row["name"] for row in pk_rows),
            foreign_keys=fks,
        )
