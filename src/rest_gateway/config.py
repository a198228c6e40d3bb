from dataclasses import dataclass, replace
from typing import Any, Optional

from common.config.env import get_env_float, get_env_int, get_env_str


@dataclass(frozen=True)
class GatewaySettings:
    """Runtime settings for the REST gateway."""

    database_url: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8080
    query_timeout_seconds: Optional[float] = 30.0
    max_page_size: int = 0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, **overrides: Any) -> "GatewaySettings":
        """Load settings from the environment; non-None overrides win."""
        settings = cls(
            database_url=get_env_str("DATABASE_URL"),
            host=get_env_str("REST_HOST", "127.0.0.1"),
            port=get_env_int("REST_PORT", 8080),
            query_timeout_seconds=get_env_float("REST_QUERY_TIMEOUT_SECONDS", 30.0),
            max_page_size=get_env_int("REST_MAX_PAGE_SIZE", 0),
            log_level=(get_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
        return replace(settings, **{k: v for k, v in overrides.items() if v is not None})
