"""SQLite-backed DAL components."""

from .param_translation import translate_postgres_params_to_sqlite
from .query_target import SqliteQueryTargetDatabase
from .schema_introspector import SqliteSchemaIntrospector

__all__ = [
    "SqliteQueryTargetDatabase",
    "SqliteSchemaIntrospector",
    "translate_postgres_params_to_sqlite",
]
