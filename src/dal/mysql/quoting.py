def quote_mysql_identifier(name: str) -> str:
    """Quote an identifier with backticks, escaping embedded backticks.

    ``%`` is doubled because aiomysql interpolates bound arguments with the
    ``%`` operator.
    """
    return "`" + name.replace("`", "``").replace("%", "%%") + "`"
