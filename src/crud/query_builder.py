"""Schema-driven SQL generation.

Statements use double-quoted identifiers and ``$n`` placeholders; the SQLite
and MySQL connection adapters rewrite both for their dialect. Identifiers are
only ever taken from the TableDef, and every client value is bound.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from common.errors import BadRequestError
from crud.coercion import CoercionError, parse_time, to_sql
from crud.models import FilterCondition, FilterOperator, Intent, ParsedRequest, SqlStatement
from dal.capabilities import BackendCapabilities
from dal.type_normalization import base_type_name
from schema import ColumnDef, ColumnKind, TableDef


def quote_identifier(name: str) -> str:
    """Quote an identifier in canonical double-quote form."""
    return '"' + name.replace('"', '""') + '"'


class _Params:
    """Collects bind values and hands out their ``$n`` placeholders."""

    def __init__(self) -> None:
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


class QueryBuilder:
    """Builds parameterized statements for one dialect."""

    def __init__(self, capabilities: BackendCapabilities):
        """Initialize with the target dialect's capabilities."""
        self.capabilities = capabilities

    def build(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        """Build the statement for a request's intent."""
        if request.intent == Intent.LIST:
            return self._build_list(table, request)
        if request.intent == Intent.GET:
            return self._build_get(table, request)
        if request.intent == Intent.CREATE:
            return self._build_create(table, request)
        if request.intent == Intent.UPDATE:
            return self._build_update(table, request)
        if request.intent == Intent.DELETE:
            return self._build_delete(table, request)
        raise BadRequestError(f"Unsupported intent '{request.intent}'")

    def build_count(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        """Count rows matching a list request's filters, ignoring pagination."""
        params = _Params()
        sql = f"SELECT COUNT(*) AS total FROM {quote_identifier(table.name)}"
        where = self._where_filters(table, request.filters, params)
        if where:
            sql += f" WHERE {where}"
        return SqlStatement(sql, tuple(params.values))

    def build_get(self, table: TableDef, record_id: str) -> SqlStatement:
        """Select one row by primary key."""
        params = _Params()
        where = self._where_key(table, record_id, params)
        sql = f"SELECT * FROM {quote_identifier(table.name)} WHERE {where}"
        return SqlStatement(sql, tuple(params.values))

    def _build_list(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        params = _Params()
        sql = f"SELECT * FROM {quote_identifier(table.name)}"
        where = self._where_filters(table, request.filters, params)
        if where:
            sql += f" WHERE {where}"

        if request.sort:
            order = []
            for spec in request.sort:
                column = self._resolve_column(table, spec.field, "sort")
                direction = "DESC" if spec.descending else "ASC"
                order.append(f"{quote_identifier(column.name)} {direction}")
            sql += " ORDER BY " + ", ".join(order)

        if request.limit is not None:
            sql += f" LIMIT {params.add(request.limit)}"
        elif request.offset and self.capabilities.unbounded_limit is not None:
            sql += f" LIMIT {self.capabilities.unbounded_limit}"
        if request.offset:
            sql += f" OFFSET {params.add(request.offset)}"
        return SqlStatement(sql, tuple(params.values))

    def _build_get(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        return self.build_get(table, self._require_id(request))

    def prepare_rows(
        self, table: TableDef, request: ParsedRequest
    ) -> Tuple[Tuple[str, ...], List[Dict[str, Any]]]:
        """Resolve and coerce create rows; returns the shared column set and bind values."""
        if not request.rows:
            raise BadRequestError("Create requires at least one row")

        generated = table.autoincrement_column
        column_set: Optional[Tuple[str, ...]] = None
        prepared: List[Dict[str, Any]] = []
        for index, row in enumerate(request.rows):
            resolved = self._resolve_body(table, row)
            if generated is not None:
                # Generated keys are assigned by the database even when supplied.
                resolved.pop(generated.name, None)
            names = tuple(name for name in table.column_names if name in resolved)
            if column_set is None:
                column_set = names
            elif set(names) != set(column_set):
                raise BadRequestError(
                    "All rows of a bulk create must supply the same fields",
                    details={"row": index},
                )
            prepared.append(
                {name: self._coerce_write(table.column(name), resolved[name]) for name in names}
            )

        if not column_set:
            raise BadRequestError("Create body has no writable fields")
        return column_set, prepared

    def _build_create(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        column_set, prepared = self.prepare_rows(table, request)
        params = _Params()
        value_groups = []
        for values in prepared:
            placeholders = [params.add(values[name]) for name in column_set]
            value_groups.append("(" + ", ".join(placeholders) + ")")

        column_sql = ", ".join(quote_identifier(name) for name in column_set)
        sql = (
            f"INSERT INTO {quote_identifier(table.name)} ({column_sql}) "
            f"VALUES {', '.join(value_groups)}"
        )
        generated = table.autoincrement_column
        returns_key = False
        if generated is not None and self.capabilities.supports_returning:
            sql += f" RETURNING {quote_identifier(generated.name)}"
            returns_key = True
        return SqlStatement(sql, tuple(params.values), returns_key=returns_key)

    def _build_update(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        record_id = self._require_id(request)
        if not request.rows:
            raise BadRequestError("Update requires a body")
        resolved = self._resolve_body(table, request.rows[0])
        params = _Params()
        assignments = []
        for name in table.column_names:
            if name not in resolved or name in table.primary_key:
                continue
            column = table.column(name)
            value = self._coerce_write(column, resolved[name])
            assignments.append(f"{quote_identifier(name)} = {params.add(value)}")
        if not assignments:
            raise BadRequestError("Update body has no writable fields")

        where = self._where_key(table, record_id, params)
        sql = f"UPDATE {quote_identifier(table.name)} SET {', '.join(assignments)} WHERE {where}"
        return SqlStatement(sql, tuple(params.values))

    def _build_delete(self, table: TableDef, request: ParsedRequest) -> SqlStatement:
        params = _Params()
        where = self._where_key(table, self._require_id(request), params)
        sql = f"DELETE FROM {quote_identifier(table.name)} WHERE {where}"
        return SqlStatement(sql, tuple(params.values))

    def key_values(self, table: TableDef, record_id: str) -> Dict[str, Any]:
        """Split and coerce a path id into primary-key column values."""
        key_columns = table.primary_key_columns
        parts = record_id.split(",") if len(key_columns) > 1 else [record_id]
        if len(parts) != len(key_columns):
            raise BadRequestError(
                f"Id '{record_id}' must supply {len(key_columns)} comma-separated key values"
            )
        values = {}
        for column, part in zip(key_columns, parts):
            try:
                values[column.name] = bind_value(column, part)
            except CoercionError as exc:
                raise BadRequestError(f"Invalid id for '{column.name}': {exc}") from None
        return values

    def _where_key(self, table: TableDef, record_id: str, params: _Params) -> str:
        values = self.key_values(table, record_id)
        return " AND ".join(
            f"{quote_identifier(name)} = {params.add(value)}" for name, value in values.items()
        )

    def _where_filters(
        self, table: TableDef, filters: Sequence[FilterCondition], params: _Params
    ) -> str:
        clauses = [self._filter_clause(table, condition, params) for condition in filters]
        return " AND ".join(clauses)

    def _filter_clause(self, table: TableDef, condition: FilterCondition, params: _Params) -> str:
        column = self._resolve_column(table, condition.field, "filter")
        target = quote_identifier(column.name)
        operator = condition.operator

        if operator == FilterOperator.LIKE:
            if not _is_plain_text(column):
                target = f"CAST({target} AS {self.capabilities.text_cast_type})"
            return f"{target} LIKE {params.add(str(condition.value))}"

        if operator == FilterOperator.IN:
            values = condition.value
            if isinstance(values, str):
                values = [values]
            if not values:
                raise BadRequestError(f"'in' filter on '{column.name}' needs at least one value")
            placeholders = [
                params.add(self._coerce_filter(column, value)) for value in values
            ]
            return f"{target} IN ({', '.join(placeholders)})"

        value = self._coerce_filter(column, condition.value)
        return f"{target} {operator.sql} {params.add(value)}"

    def _resolve_column(self, table: TableDef, field: str, usage: str) -> ColumnDef:
        column = table.column(field)
        if column is None:
            raise BadRequestError(
                f"Unknown {usage} field '{field}' for table '{table.name}'",
                details={"table": table.name, "field": field},
            )
        return column

    def _resolve_body(self, table: TableDef, row: Dict[str, Any]) -> Dict[str, Any]:
        resolved: Dict[str, Any] = {}
        for field, value in row.items():
            column = self._resolve_column(table, field, "body")
            if column.name in resolved:
                raise BadRequestError(f"Field '{column.name}' given more than once")
            resolved[column.name] = value
        return resolved

    @staticmethod
    def _coerce_write(column: ColumnDef, value: Any) -> Any:
        if value is None and not column.is_nullable:
            raise BadRequestError(f"Field '{column.name}' may not be null")
        try:
            return bind_value(column, value)
        except CoercionError as exc:
            raise BadRequestError(f"Invalid value for '{column.name}': {exc}") from None

    @staticmethod
    def _coerce_filter(column: ColumnDef, value: Any) -> Any:
        try:
            return bind_value(column, value)
        except CoercionError as exc:
            raise BadRequestError(f"Invalid filter value for '{column.name}': {exc}") from None

    @staticmethod
    def _require_id(request: ParsedRequest) -> str:
        if request.record_id is None:
            raise BadRequestError(f"'{request.intent.value}' requires an id")
        return request.record_id


_TIME_TYPES = {"time", "time without time zone", "time with time zone", "timetz"}
_ZONED_TYPES = {"timestamptz", "timestamp with time zone", "timetz", "time with time zone"}
_UNBINDABLE_TYPES = {"array", "interval"}


def _declared_base(column: ColumnDef) -> str:
    if not column.declared_type:
        return ""
    return base_type_name(column.declared_type)


def _is_unbindable(base: str) -> bool:
    # Postgres reports array columns by their element udt name, e.g. _int4.
    return base in _UNBINDABLE_TYPES or base.startswith("_") or base.endswith("[]")


def _is_plain_text(column: ColumnDef) -> bool:
    base = _declared_base(column)
    return column.kind == ColumnKind.TEXT and base not in _TIME_TYPES and not _is_unbindable(base)


def bind_value(column: ColumnDef, value: Any) -> Any:
    """Coerce ``value`` for ``column`` and shape it to the column's declared type.

    Bare dates bind as midnight unless the column is a DATE, offsets are
    folded to UTC for zone-less timestamps, and TIME columns bind a time of
    day. Raises CoercionError for values the driver could not bind.
    """
    base = _declared_base(column)
    if value is None:
        return None
    if _is_unbindable(base):
        raise CoercionError(value, column.kind, f"{column.declared_type} values cannot be bound")
    if base in _TIME_TYPES:
        return _time_value(column, value, zoned=base in _ZONED_TYPES)

    converted = to_sql(value, column.kind)
    if isinstance(converted, datetime):
        if converted.tzinfo is not None and base not in _ZONED_TYPES:
            return converted.astimezone(timezone.utc).replace(tzinfo=None)
        return converted
    if isinstance(converted, date) and base != "date":
        return datetime.combine(converted, time())
    return converted


def _time_value(column: ColumnDef, value: Any, zoned: bool) -> time:
    if isinstance(value, time):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parse_time(value)
        except ValueError:
            raise CoercionError(value, column.kind, "expected an ISO-8601 time of day") from None
    else:
        raise CoercionError(value, column.kind)

    if zoned and parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    if not zoned and parsed.tzinfo is not None:
        raise CoercionError(value, column.kind, "column does not store a time zone")
    return parsed
