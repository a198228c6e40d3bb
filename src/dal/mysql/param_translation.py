from typing import Any, List, Tuple

from dal.mysql.quoting import quote_mysql_identifier
from dal.util.placeholders import translate_placeholders


def translate_postgres_params_to_mysql(sql: str, params: List[Any]) -> Tuple[str, List[Any]]:
    """Translate canonical SQL ($N, double-quoted identifiers) to aiomysql form."""
    return translate_placeholders(
        sql,
        params,
        placeholder="%s",
        quote_identifier=quote_mysql_identifier,
        escape_percent=True,
    )
