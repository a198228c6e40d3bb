"""PostgreSQL-backed DAL components."""

from .query_target import PostgresQueryTargetDatabase
from .schema_introspector import PostgresSchemaIntrospector

__all__ = ["PostgresQueryTargetDatabase", "PostgresSchemaIntrospector"]
