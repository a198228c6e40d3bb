"""Data access layer: provider connections, schema introspection and the table registry."""

from dal.capabilities import BackendCapabilities, capabilities_for_provider
from dal.database import Database
from dal.schema_registry import (
    TableRegistry,
    get_table_registry,
    introspect_tables,
    load_table_registry,
    reset_table_registry,
)

__all__ = [
    "BackendCapabilities",
    "Database",
    "TableRegistry",
    "capabilities_for_provider",
    "get_table_registry",
    "introspect_tables",
    "load_table_registry",
    "reset_table_registry",
]
