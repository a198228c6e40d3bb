import hashlib
from typing import Awaitable, Optional

from common.config.env import get_env_bool, get_env_str
from common.observability.context import request_id_var, table_name_var


def trace_enabled() -> bool:
    """Return True when query tracing is enabled or an OTLP exporter is configured."""
    explicit = get_env_bool("DAL_TRACE_QUERIES")
    if explicit is not None:
        return explicit
    return bool(get_env_str("OTEL_EXPORTER_OTLP_ENDPOINT"))


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Awaitable,
):
    """Trace a DAL query operation with OTEL when enabled."""
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        request_id = request_id_var.get()
        if request_id:
            span.set_attribute("request_id", request_id)
        table_name = table_name_var.get()
        if table_name:
            span.set_attribute("db.sql.table", table_name)
        span.set_attribute("db.provider", provider)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
