"""MySQL-backed DAL components."""

from .param_translation import translate_postgres_params_to_mysql
from .query_target import MysqlQueryTargetDatabase
from .quoting import quote_mysql_identifier
from .schema_introspector import MysqlSchemaIntrospector

__all__ = [
    "MysqlQueryTargetDatabase",
    "MysqlSchemaIntrospector",
    "quote_mysql_identifier",
    "translate_postgres_params_to_mysql",
]
