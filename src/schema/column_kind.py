from enum import Enum


class ColumnKind(str, Enum):
    """Normalized column type family used to drive JSON/SQL coercion."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    JSON = "json"
