"""DAL interfaces shared across providers."""

from .schema_introspector import SchemaIntrospector

__all__ = ["SchemaIntrospector"]
