from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Tuple

from dal.util.placeholders import translate_placeholders


def adapt_sqlite_value(value: Any) -> Any:
    """Convert values sqlite3 cannot bind natively into storable equivalents."""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def translate_postgres_params_to_sqlite(sql: str, params: List[Any]) -> Tuple[str, List[Any]]:
    """Translate Postgres-style $N placeholders to SQLite ? placeholders."""
    sqlite_sql, ordered = translate_placeholders(sql, params, placeholder="?")
    return sqlite_sql, [adapt_sqlite_value(value) for value in ordered]
