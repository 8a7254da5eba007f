"""Dialect adapters: catalog readers and statement renderers per engine.

Usage:
    from db_reset.dialects import get_dialect

    dialect = get_dialect("postgres")
    dialect = get_dialect("sqlite+aiosqlite:///test.db")  # by URL scheme
"""

from db_reset.dialects.base import Dialect, SQLDialect
from db_reset.dialects.mysql import MySQLDialect
from db_reset.dialects.postgres import PostgresDialect
from db_reset.dialects.sqlite import SQLiteDialect
from db_reset.dialects.sqlserver import SQLServerDialect
from db_reset.errors import ConfigurationError

_DIALECTS: dict[str, type[SQLDialect]] = {
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "sqlite": SQLiteDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "mssql": SQLServerDialect,
    "sqlserver": SQLServerDialect,
}


def get_dialect(name_or_url: str) -> SQLDialect:
    """Resolve a dialect by name (``"postgres"``) or database URL.

    Raises:
        ConfigurationError: If no bundled dialect matches.
    """
    key = name_or_url.split("://", 1)[0].split("+", 1)[0].strip().lower()
    try:
        return _DIALECTS[key]()
    except KeyError:
        available = ", ".join(sorted(_DIALECTS))
        raise ConfigurationError(
            f"Unknown dialect '{key}'. Available: {available}"
        ) from None


__all__ = [
    "Dialect",
    "SQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "MySQLDialect",
    "SQLServerDialect",
    "get_dialect",
]
