"""Provider normalization helpers.

Canonical Provider IDs (internal, lowercase):
- "postgres" - PostgreSQL
- "sqlite" - SQLite
- "mysql" - MySQL / MariaDB

User-Facing Aliases (case-insensitive), as used in connection-string schemes:
- PostgreSQL: "postgresql", "postgres", "pg"
- SQLite: "sqlite", "sqlite3", "file"
- MySQL: "mysql", "mariadb"

Example:
    >>> normalize_provider("PostgreSQL")
    'postgres'
    >>> normalize_provider("MariaDB")
    'mysql'
"""

from typing import Set

# Alias mappings: user-friendly names -> canonical provider ID
PROVIDER_ALIASES: dict[str, str] = {
    # PostgreSQL aliases
    "postgresql": "postgres",
    "postgres": "postgres",
    "pg": "postgres",
    # SQLite aliases
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    "file": "sqlite",
    # MySQL aliases
    "mysql": "mysql",
    "mariadb": "mysql",
}

SUPPORTED_PROVIDERS: Set[str] = {"postgres", "sqlite", "mysql"}


def normalize_provider(value: str) -> str:
    """Normalize a provider value to its canonical form.

    Unknown values pass through lowercased and stripped; validation happens
    in the caller against SUPPORTED_PROVIDERS.
    """
    cleaned = value.strip().lower()
    # Driver suffixes such as "postgresql+asyncpg" resolve by their base name.
    cleaned = cleaned.split("+", 1)[0]
    return PROVIDER_ALIASES.get(cleaned, cleaned)
