from typing import List

from common.interfaces.schema_introspector import SchemaIntrospector
from dal.database import Database
from dal.type_normalization import normalize_column_kind
from schema import ColumnDef, ForeignKeyDef, TableDef, UnsupportedTableError


class MysqlSchemaIntrospector(SchemaIntrospector):
    """MySQL implementation of SchemaIntrospector using information_schema."""

    provider = "mysql"

    async def list_table_names(self) -> List[str]:
        """List all base tables in the current MySQL database."""
        query = """
            SELECT table_name AS table_name
            FROM information_schema.tables
            WHERE table_schema = DATABASE()
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        async with Database.get_connection() as conn:
            rows = await conn.fetch(query)
        return [row["table_name"] for row in rows]

    async def get_table_def(self, table_name: str) -> TableDef:
        """Get the full definition of a table (columns, keys, FKs)."""
        async with Database.get_connection() as conn:
            cols_query = """
                SELECT column_name AS column_name, data_type AS data_type,
                       column_type AS column_type, is_nullable AS is_nullable,
                       column_key AS column_key, column_default AS column_default,
                       extra AS extra
                FROM information_schema.columns
                WHERE table_schema = DATABASE()
                AND table_name = $1
                ORDER BY ordinal_position
            """
            col_rows = await conn.fetch(cols_query, table_name)

            pk_query = """
                SELECT column_name AS column_name
                FROM information_schema.key_column_usage
                WHERE table_schema = DATABASE()
                AND table_name = $1
                AND constraint_name = 'PRIMARY'
                ORDER BY ordinal_position
            """
            pk_rows = await conn.fetch(pk_query, table_name)

            fk_query = """
                SELECT
                    column_name AS column_name,
                    referenced_table_name AS foreign_table_name,
                    referenced_column_name AS foreign_column_name
                FROM information_schema.key_column_usage
                WHERE table_schema = DATABASE()
                AND table_name = $1
                AND referenced_table_name IS NOT NULL
            """
            fk_rows = await conn.fetch(fk_query, table_name)

        primary_key = tuple(row["column_name"] for row in pk_rows)
        if not primary_key:
            raise UnsupportedTableError(table_name, "no primary key")

        columns = tuple(
            ColumnDef(
                name=row["column_name"],
                kind=normalize_column_kind(row["data_type"], "mysql", row["column_type"]),
                declared_type=row["column_type"] or row["data_type"],
                is_nullable=(row["is_nullable"] == "YES"),
                is_primary_key=row["column_name"] in primary_key,
                is_autoincrement="auto_increment" in (row["extra"] or "").lower(),
                has_default=row["column_default"] is not None,
            )
            for row in col_rows
        )

        fks = tuple(
            ForeignKeyDef(
                column_name=row["column_name"],
                foreign_table_name=row["foreign_table_name"],
                foreign_column_name=row["foreign_column_name"],
            )
            for row in fk_rows
        )

        return TableDef(name=table_name, columns=columns, primary_key=primary_key, foreign_keys=fks)
