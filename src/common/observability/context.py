from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
table_name_var: ContextVar[Optional[str]] = ContextVar("table_name", default=None)
