import sqlite3
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BackendCapabilities:
    """SQL dialect capability flags consumed by the query builder."""

    provider_name: str = "unspecified"
    supports_returning: bool = False
    supports_cancel: bool = False
    supports_transactions: bool = True
    # Literal used for "no limit" when only an OFFSET is requested; None means
    # the dialect accepts OFFSET without LIMIT.
    unbounded_limit: Optional[str] = None
    # Target type when a LIKE filter is applied to a non-text column.
    text_cast_type: str = "TEXT"
    # MySQL reports the first id of a multi-row INSERT, SQLite the last.
    last_insert_id_is_first: bool = False
    notes: Optional[str] = None


def capabilities_for_provider(provider: str) -> BackendCapabilities:
    """Return capability flags for a given provider."""
    normalized = (provider or "").strip().lower()
    if normalized == "postgres":
        return BackendCapabilities(
            provider_name="postgres",
            supports_returning=True,
            supports_cancel=True,
        )
    if normalized == "sqlite":
        return BackendCapabilities(
            provider_name="sqlite",
            supports_returning=sqlite3.sqlite_version_info >= (3, 35, 0),
            supports_cancel=True,
            unbounded_limit="-1",
        )
    if normalized == "mysql":
        return BackendCapabilities(
            provider_name="mysql",
            supports_returning=False,
            text_cast_type="CHAR",
            last_insert_id_is_first=True,
            unbounded_limit="18446744073709551615",
            notes="Generated keys are read back through LAST_INSERT_ID().",
        )
    return BackendCapabilities(provider_name=normalized or "unspecified")
