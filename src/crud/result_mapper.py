from typing import Any, Dict, Iterable, List, Mapping

from common.errors import NotFoundError
from crud.coercion import from_sql
from schema import TableDef


def map_row(row: Mapping[str, Any], table: TableDef) -> Dict[str, Any]:
    """Convert one driver row into a JSON-ready dict ordered by the table's columns."""
    mapped: Dict[str, Any] = {}
    for column in table.columns:
        if column.name in row:
            mapped[column.name] = from_sql(row[column.name], column.kind)
    # Columns added after startup are passed through untyped.
    for name, value in row.items():
        if name not in mapped:
            mapped[name] = value
    return mapped


def map_rows(rows: Iterable[Mapping[str, Any]], table: TableDef) -> List[Dict[str, Any]]:
    """Map every row; an empty result maps to an empty list."""
    return [map_row(row, table) for row in rows]


def map_single(rows: Iterable[Mapping[str, Any]], table: TableDef) -> Dict[str, Any]:
    """Map the first row or raise NotFoundError when there is none."""
    for row in rows:
        return map_row(row, table)
    raise NotFoundError(f"Record not found in '{table.name}'")
