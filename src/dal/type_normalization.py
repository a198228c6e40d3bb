"""Map declared SQL type strings onto the ColumnKind enumeration."""

from __future__ import annotations

import logging
import re
from typing import Optional

from schema import ColumnKind

logger = logging.getLogger(__name__)

_BASE_TYPE_PATTERN = re.compile(r"^\s*([a-z_][a-z0-9_ ]*?)\s*(?:\(.*\))?\s*(?:unsigned)?\s*$")

_COMMON_TYPES: dict[str, ColumnKind] = {
    "int": ColumnKind.INTEGER,
    "integer": ColumnKind.INTEGER,
    "smallint": ColumnKind.INTEGER,
    "bigint": ColumnKind.INTEGER,
    "float": ColumnKind.REAL,
    "real": ColumnKind.REAL,
    "double": ColumnKind.REAL,
    "double precision": ColumnKind.REAL,
    "numeric": ColumnKind.REAL,
    "decimal": ColumnKind.REAL,
    "char": ColumnKind.TEXT,
    "varchar": ColumnKind.TEXT,
    "character": ColumnKind.TEXT,
    "character varying": ColumnKind.TEXT,
    "text": ColumnKind.TEXT,
    "bool": ColumnKind.BOOLEAN,
    "boolean": ColumnKind.BOOLEAN,
    "date": ColumnKind.DATETIME,
    "datetime": ColumnKind.DATETIME,
    "timestamp": ColumnKind.DATETIME,
    "time": ColumnKind.TEXT,
    "json": ColumnKind.JSON,
}

_DIALECT_TYPES: dict[str, dict[str, ColumnKind]] = {
    "sqlite": {
        "tinyint": ColumnKind.INTEGER,
        "mediumint": ColumnKind.INTEGER,
        "int2": ColumnKind.INTEGER,
        "int8": ColumnKind.INTEGER,
        "unsigned big int": ColumnKind.INTEGER,
        "nchar": ColumnKind.TEXT,
        "nvarchar": ColumnKind.TEXT,
        "native character": ColumnKind.TEXT,
        "varying character": ColumnKind.TEXT,
        "clob": ColumnKind.TEXT,
    },
    "postgres": {
        "int2": ColumnKind.INTEGER,
        "int4": ColumnKind.INTEGER,
        "int8": ColumnKind.INTEGER,
        "serial": ColumnKind.INTEGER,
        "bigserial": ColumnKind.INTEGER,
        "smallserial": ColumnKind.INTEGER,
        "float4": ColumnKind.REAL,
        "float8": ColumnKind.REAL,
        "money": ColumnKind.REAL,
        "bpchar": ColumnKind.TEXT,
        "citext": ColumnKind.TEXT,
        "uuid": ColumnKind.TEXT,
        "timestamp without time zone": ColumnKind.DATETIME,
        "timestamp with time zone": ColumnKind.DATETIME,
        "timestamptz": ColumnKind.DATETIME,
        "jsonb": ColumnKind.JSON,
        "time without time zone": ColumnKind.TEXT,
        "time with time zone": ColumnKind.TEXT,
        "timetz": ColumnKind.TEXT,
        "interval": ColumnKind.TEXT,
    },
    "mysql": {
        "tinyint": ColumnKind.INTEGER,
        "mediumint": ColumnKind.INTEGER,
        "year": ColumnKind.INTEGER,
        "tinytext": ColumnKind.TEXT,
        "mediumtext": ColumnKind.TEXT,
        "longtext": ColumnKind.TEXT,
        "enum": ColumnKind.TEXT,
        "set": ColumnKind.TEXT,
    },
}


def base_type_name(declared_type: str) -> str:
    """Strip length/precision arguments and modifiers from a declared type."""
    normalized = declared_type.strip().lower()
    match = _BASE_TYPE_PATTERN.match(normalized)
    if match:
        return match.group(1).strip()
    return re.split(r"[\s(]", normalized, maxsplit=1)[0]


def normalize_column_kind(
    declared_type: Optional[str], provider: str, column_type: Optional[str] = None
) -> ColumnKind:
    """Resolve the ColumnKind for a declared type string.

    ``column_type`` carries the full MySQL type (``tinyint(1)``) when the
    catalog reports it separately. Unknown types degrade to text with a warning.
    """
    if not declared_type:
        # SQLite allows typeless columns; they hold text in practice.
        return ColumnKind.TEXT

    full = (column_type or declared_type).strip().lower()
    if provider == "mysql" and full.startswith("tinyint(1)"):
        return ColumnKind.BOOLEAN

    base = base_type_name(declared_type)
    dialect_types = _DIALECT_TYPES.get(provider, {})
    kind = dialect_types.get(base) or _COMMON_TYPES.get(base)
    if kind is not None:
        return kind

    logger.warning(
        "unknown_column_type provider=%s declared_type=%s defaulting_to=text",
        provider,
        declared_type,
    )
    return ColumnKind.TEXT
