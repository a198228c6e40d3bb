from typing import List

from common.interfaces.schema_introspector import SchemaIntrospector
from dal.database import Database
from dal.type_normalization import normalize_column_kind
from schema import ColumnDef, ForeignKeyDef, TableDef, UnsupportedTableError


class PostgresSchemaIntrospector(SchemaIntrospector):
    """Postgres implementation of SchemaIntrospector using information_schema."""

    provider = "postgres"

    async def list_table_names(self) -> List[str]:
        """List base tables in the connection's current schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = current_schema()
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
                SELECT column_name, data_type, udt_name, is_nullable,
                       column_default, is_identity
                FROM information_schema.columns
                WHERE table_name = $1 AND table_schema = current_schema()
                ORDER BY ordinal_position
            """
            col_rows = await conn.fetch(cols_query, table_name)

            pk_query = """
                SELECT kcu.column_name
                FROM information_schema.table_constraints AS tc
                JOIN information_schema.key_column_usage AS kcu
                    ON tc.constraint_name = kcu.constraint_name
                    AND tc.table_schema = kcu.table_schema
                    AND tc.table_name = kcu.table_name
                WHERE tc.constraint_type = 'PRIMARY KEY'
                    AND tc.table_name = $1
                    AND tc.table_schema = current_schema()
                ORDER BY kcu.ordinal_position
            """
            pk_rows = await conn.fetch(pk_query, table_name)

            fk_query = """
                SELECT
                    kcu.column_name,
                    ccu.table_name AS foreign_table_name,
                    ccu.column_name AS foreign_column_name
                FROM information_schema.table_constraints AS tc
                JOIN information_schema.key_column_usage AS kcu
                    ON tc.constraint_name = kcu.constraint_name
                    AND tc.table_schema = kcu.table_schema
                JOIN information_schema.constraint_column_usage AS ccu
                    ON ccu.constraint_name = tc.constraint_name
                    AND ccu.constraint_schema = tc.table_schema
                WHERE tc.constraint_type = 'FOREIGN KEY'
                    AND tc.table_name = $1
                    AND tc.table_schema = current_schema()
            """
            fk_rows = await conn.fetch(fk_query, table_name)

        primary_key = tuple(row["column_name"] for row in pk_rows)
        if not primary_key:
            raise UnsupportedTableError(table_name, "no primary key")

        columns = tuple(
            ColumnDef(
                name=row["column_name"],
                kind=normalize_column_kind(_declared_type(row), "postgres"),
                declared_type=_declared_type(row),
                is_nullable=(row["is_nullable"] == "YES"),
                is_primary_key=row["column_name"] in primary_key,
                is_autoincrement=_is_generated_key(row) and row["column_name"] in primary_key,
                has_default=row["column_default"] is not None or row["is_identity"] == "YES",
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


def _declared_type(row) -> str:
    data_type = row["data_type"] or ""
    if data_type in {"USER-DEFINED", "ARRAY"}:
        return row["udt_name"] or data_type
    return data_type


def _is_generated_key(row) -> bool:
    default = (row["column_default"] or "").lower()
    return row["is_identity"] == "YES" or default.startswith("nextval(")
