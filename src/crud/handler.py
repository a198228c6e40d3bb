"""Generic CRUD request handling driven by the table registry."""

import logging
from dataclasses import replace
from typing import Any, AsyncContextManager, Callable, Dict, Iterable, List, Optional, Tuple

from common.errors import (
    ConflictError,
    ErrorCode,
    InternalError,
    NotFoundError,
    RestError,
    canonical_error_code_for_category,
)
from common.observability.context import table_name_var
from crud.models import CrudResponse, Intent, ParsedRequest, SqlStatement, failure, ok
from crud.query_builder import QueryBuilder
from crud.request_translator import translate_request
from crud.result_mapper import map_row, map_rows, map_single
from dal.capabilities import BackendCapabilities
from dal.error_classification import classify_error, emit_classified_error
from dal.schema_registry import TableRegistry
from dal.util.execute_status import affected_rows
from dal.util.timeouts import Deadline, QueryTimeoutError, run_with_deadline
from schema import TableDef

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Database operation timed out"

ConnectionFactory = Callable[[], AsyncContextManager[Any]]


class CrudHandler:
    """Turns one HTTP request into one CrudResponse."""

    def __init__(
        self,
        registry: TableRegistry,
        capabilities: BackendCapabilities,
        connection_factory: ConnectionFactory,
        timeout_seconds: Optional[float] = None,
        max_page_size: int = 0,
    ):
        """Initialize with the published registry and a connection source."""
        self.registry = registry
        self.capabilities = capabilities
        self.builder = QueryBuilder(capabilities)
        self._connection_factory = connection_factory
        self.timeout_seconds = timeout_seconds
        self.max_page_size = max_page_size

    async def handle(
        self,
        method: str,
        path: str,
        query_params: Iterable[Tuple[str, str]] = (),
        body: Optional[bytes] = None,
    ) -> CrudResponse:
        """Translate, execute and map a request; never raises for client or driver errors."""
        token = None
        try:
            request = translate_request(method, path, query_params, body)
            table = self.registry.get(request.table_name)
            token = table_name_var.set(table.name)
            response = await self._dispatch(table, request)
            logger.info(
                "crud_request_completed table=%s intent=%s status=%d",
                table.name,
                request.intent.value,
                response.status_code,
            )
            return response
        except RestError as exc:
            if exc.status_code >= 500:
                logger.error("crud_request_failed code=%s message=%s", exc.code.value, exc.message)
            else:
                logger.info(
                    "crud_request_rejected method=%s path=%s code=%s message=%s",
                    method,
                    path,
                    exc.code.value,
                    exc.message,
                )
            return failure(exc.status_code, exc.message)
        except QueryTimeoutError as exc:
            logger.warning(
                "crud_request_timeout provider=%s operation=%s timeout_seconds=%s",
                exc.provider,
                exc.operation_name,
                exc.timeout_seconds,
            )
            return failure(504, TIMEOUT_MESSAGE)
        finally:
            if token is not None:
                table_name_var.reset(token)

    async def _dispatch(self, table: TableDef, request: ParsedRequest) -> CrudResponse:
        request = self._apply_page_size(request)
        # Build before acquiring a connection so bad requests never touch the pool.
        statement = self.builder.build(table, request)
        deadline = Deadline.after(self.timeout_seconds)
        provider = self.capabilities.provider_name

        try:
            async with self._connection_factory() as conn:
                if request.intent == Intent.LIST:
                    return await self._list(conn, deadline, table, request, statement)
                if request.intent == Intent.GET:
                    rows = await self._run(conn, deadline, "get", conn.fetch, statement)
                    return ok(map_single(rows, table))
                if request.intent == Intent.CREATE:
                    return await self._create(conn, deadline, table, request, statement)
                if request.intent == Intent.UPDATE:
                    return await self._update(conn, deadline, table, request, statement)
                return await self._delete(conn, deadline, table, request, statement)
        except (RestError, QueryTimeoutError):
            raise
        except Exception as exc:
            raise self._driver_error(provider, request.intent.value, exc) from exc

    def _apply_page_size(self, request: ParsedRequest) -> ParsedRequest:
        if request.intent != Intent.LIST or self.max_page_size <= 0:
            return request
        limit = request.limit
        if limit is None or limit > self.max_page_size:
            limit = self.max_page_size
        return replace(request, limit=limit)

    async def _list(
        self, conn, deadline: Deadline, table: TableDef, request: ParsedRequest, statement
    ) -> CrudResponse:
        count = self.builder.build_count(table, request)
        # Page and total are read from one snapshot.
        async with conn.snapshot():
            rows = await self._run(conn, deadline, "list", conn.fetch, statement)
            total = await self._run(conn, deadline, "count", conn.fetchval, count)
        return ok(map_rows(rows, table), total=int(total or 0))

    async def _create(
        self, conn, deadline: Deadline, table: TableDef, request: ParsedRequest, statement
    ) -> CrudResponse:
        _, prepared = self.builder.prepare_rows(table, request)
        generated = table.autoincrement_column

        async with conn.transaction():
            if statement.returns_key:
                returned = await self._run(conn, deadline, "create", conn.fetch, statement)
                keys: List[Any] = [next(iter(row.values())) for row in returned]
            else:
                await self._run(conn, deadline, "create", conn.execute, statement)
                keys = self._generated_keys(conn.last_insert_id, len(prepared))

        created: List[Dict[str, Any]] = []
        for index, values in enumerate(prepared):
            row = dict(values)
            if generated is not None and index < len(keys):
                row[generated.name] = keys[index]
            created.append(map_row(row, table))

        data = created if request.is_bulk else created[0]
        return ok(data, status_code=201)

    def _generated_keys(self, last_insert_id: Optional[int], row_count: int) -> List[Any]:
        if last_insert_id is None or row_count == 0:
            return []
        first = last_insert_id
        if not self.capabilities.last_insert_id_is_first:
            first = last_insert_id - row_count + 1
        return [first + offset for offset in range(row_count)]

    async def _update(
        self, conn, deadline: Deadline, table: TableDef, request: ParsedRequest, statement
    ) -> CrudResponse:
        reread = self.builder.build_get(table, request.record_id)
        async with conn.transaction():
            status = await self._run(conn, deadline, "update", conn.execute, statement)
            if affected_rows(status) == 0:
                raise _not_found(table, request.record_id)
            rows = await self._run(conn, deadline, "get", conn.fetch, reread)
        return ok(map_single(rows, table))

    async def _delete(
        self, conn, deadline: Deadline, table: TableDef, request: ParsedRequest, statement
    ) -> CrudResponse:
        status = await self._run(conn, deadline, "delete", conn.execute, statement)
        if affected_rows(status) == 0:
            raise _not_found(table, request.record_id)
        return CrudResponse(204)

    async def _run(
        self,
        conn,
        deadline: Deadline,
        operation_name: str,
        method: Callable[..., Any],
        statement: SqlStatement,
    ) -> Any:
        return await run_with_deadline(
            lambda: method(statement.text, *statement.params),
            deadline,
            cancel=conn.cancel,
            provider=conn.provider,
            operation_name=operation_name,
        )

    def _driver_error(self, provider: str, operation: str, exc: Exception) -> Exception:
        category = classify_error(provider, exc)
        emit_classified_error(provider, operation, category, exc)
        code = canonical_error_code_for_category(category)
        if code == ErrorCode.CONSTRAINT_VIOLATION:
            return ConflictError()
        if code == ErrorCode.DB_TIMEOUT:
            return QueryTimeoutError(provider, operation, self.timeout_seconds)
        return InternalError()


def _not_found(table: TableDef, record_id: Optional[str]) -> RestError:
    return NotFoundError(f"Record '{record_id}' not found in '{table.name}'")
