"""Canonical table model shared by the DAL and the CRUD engine."""

from .column_def import ColumnDef
from .column_kind import ColumnKind
from .foreign_key_def import ForeignKeyDef
from .table_def import TableDef, UnsupportedTableError

__all__ = ["ColumnDef", "ColumnKind", "ForeignKeyDef", "TableDef", "UnsupportedTableError"]
