from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from .column_def import ColumnDef
from .foreign_key_def import ForeignKeyDef


class TableDef(BaseModel):
    """Canonical, immutable representation of a database table definition."""

    name: str
    columns: Tuple[ColumnDef, ...] = Field(default_factory=tuple)
    primary_key: Tuple[str, ...] = Field(default_factory=tuple)
    foreign_keys: Tuple[ForeignKeyDef, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_primary_key(self) -> "TableDef":
        if not self.primary_key:
            raise ValueError(f"Table '{self.name}' has no primary key")
        names = {col.name for col in self.columns}
        missing = [key for key in self.primary_key if key not in names]
        if missing:
            raise ValueError(f"Primary key columns {missing} not found in table '{self.name}'")
        return self

    @property
    def column_names(self) -> Tuple[str, ...]:
        """Column names in declared order."""
        return tuple(col.name for col in self.columns)

    @property
    def primary_key_columns(self) -> Tuple[ColumnDef, ...]:
        """Primary key columns in key order."""
        by_name = {col.name: col for col in self.columns}
        return tuple(by_name[key] for key in self.primary_key)

    @property
    def autoincrement_column(self) -> Optional[ColumnDef]:
        """The generated key column, if the table has one."""
        for col in self.primary_key_columns:
            if col.is_autoincrement:
                return col
        return None

    def column(self, name: str) -> Optional[ColumnDef]:
        """Resolve a column by exact name, then case-insensitively."""
        for col in self.columns:
            if col.name == name:
                return col
        lowered = name.lower()
        matches = [col for col in self.columns if col.name.lower() == lowered]
        if len(matches) == 1:
            return matches[0]
        return None


class UnsupportedTableError(ValueError):
    """Raised by introspectors for tables the engine cannot serve."""

    def __init__(self, table_name: str, reason: str):
        """Record the table and why it is unsupported."""
        super().__init__(f"Table '{table_name}' is unsupported: {reason}")
        self.table_name = table_name
        self.reason = reason
