"""Request-scoped observability context."""

from common.observability.context import request_id_var, table_name_var

__all__ = ["request_id_var", "table_name_var"]
