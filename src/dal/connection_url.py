"""Connection-string parsing and provider selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qsl, unquote, urlsplit

from dal.util.env import SUPPORTED_PROVIDERS, normalize_provider

DEFAULT_PORTS = {"postgres": 5432, "mysql": 3306}


@dataclass(frozen=True)
class ConnectionTarget:
    """Parsed connection string for a supported provider."""

    provider: str
    database: str
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    options: dict[str, str] = field(default_factory=dict)
    dsn: Optional[str] = None

    def redacted(self) -> str:
        """Return a log-safe rendering of the target."""
        if self.provider == "sqlite":
            return f"sqlite://{self.database}"
        auth = f"{self.user}:***@" if self.user else ""
        port = f":{self.port}" if self.port else ""
        return f"{self.provider}://{auth}{self.host or ''}{port}/{self.database}"

    def driver_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for network drivers (asyncpg, aiomysql)."""
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
        }
        return {key: value for key, value in kwargs.items() if value is not None}


def parse_connection_url(url: str) -> ConnectionTarget:
    """Parse a connection string such as ``sqlite://ci.db`` or ``postgres://u:p@h/db``.

    SQLite accepts ``sqlite://relative.db``, ``sqlite:///abs/path.db`` and
    ``sqlite://:memory:``; the rest of the string after the scheme is the path.
    """
    if not url or "://" not in url:
        raise ValueError(f"Invalid connection string: expected '<scheme>://...', got '{url}'.")

    scheme, remainder = url.split("://", 1)
    provider = normalize_provider(scheme)
    if provider not in SUPPORTED_PROVIDERS:
        allowed = ", ".join(sorted(SUPPORTED_PROVIDERS))
        raise ValueError(f"Unsupported database scheme '{scheme}'. Allowed providers: {allowed}")

    if provider == "sqlite":
        path, _, query = remainder.partition("?")
        if not path:
            raise ValueError("SQLite connection string requires a database path.")
        return ConnectionTarget(
            provider="sqlite", database=unquote(path), options=dict(parse_qsl(query))
        )

    parts = urlsplit(f"{provider}://{remainder}")
    database = unquote(parts.path.lstrip("/"))
    if not database:
        raise ValueError(f"{provider} connection string requires a database name.")
    if not parts.hostname:
        raise ValueError(f"{provider} connection string requires a host.")

    return ConnectionTarget(
        provider=provider,
        database=database,
        host=parts.hostname,
        port=parts.port or DEFAULT_PORTS.get(provider),
        user=unquote(parts.username) if parts.username else None,
        password=unquote(parts.password) if parts.password else None,
        options=dict(parse_qsl(parts.query)),
        dsn=f"postgresql://{remainder}" if provider == "postgres" else None,
    )
