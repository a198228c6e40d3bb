from typing import Optional

from pydantic import BaseModel

from .column_kind import ColumnKind


class ColumnDef(BaseModel):
    """Canonical representation of a database column definition."""

    name: str
    kind: ColumnKind
    declared_type: Optional[str] = None
    is_nullable: bool = True
    is_primary_key: bool = False
    is_autoincrement: bool = False
    has_default: bool = False

    model_config = {"frozen": True}
