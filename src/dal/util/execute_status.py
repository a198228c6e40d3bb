"""asyncpg-style command status strings shared by every provider adapter."""


def format_execute_status(sql: str, rowcount: int) -> str:
    """Render a command status such as ``UPDATE 1`` for non-asyncpg drivers."""
    verb = sql.strip().split(maxsplit=1)
    if not verb:
        return "OK"
    op = verb[0].upper()
    if op == "INSERT" and rowcount >= 0:
        # asyncpg reports "INSERT <oid> <rows>".
        return f"INSERT 0 {rowcount}"
    if op in {"UPDATE", "DELETE"} and rowcount >= 0:
        return f"{op} {rowcount}"
    return "OK"


def affected_rows(status: str) -> int:
    """Extract the affected row count from a command status string."""
    parts = (status or "").split()
    if not parts:
        return 0
    try:
        return int(parts[-1])
    except ValueError:
        return 0
