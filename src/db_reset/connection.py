"""Async connection abstraction used by catalog readers and the executor.

Defines the ``DatabaseConnection`` Protocol and ``SQLAlchemyConnection``,
its implementation over SQLAlchemy's async engine.  All I/O methods are
``async def`` -- the library is async-first.

Usage:
    from db_reset.connection import SQLAlchemyConnection

    async with await SQLAlchemyConnection.connect("postgresql://u:p@localhost/app") as conn:
        rows = await conn.fetch_all("SELECT 1 AS one")
        async with conn.transaction():
            await conn.execute("DELETE FROM users")
"""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

# Plain scheme -> async driver scheme
_ASYNC_DRIVERS: dict[str, str] = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
    "mysql": "mysql+aiomysql",
    "mariadb": "mysql+aiomysql",
    "mssql": "mssql+aioodbc",
}


class DatabaseConnection(Protocol):
    """Connection interface the planner's collaborators rely on.

    SQL text uses named ``:param`` placeholders.  Calls made outside
    ``transaction()`` are committed individually.
    """

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Run a query and return its rows as dicts.

        Example:
            rows = await conn.fetch_all(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = :schema",
                {"schema": "public"},
            )
        """
        ...

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> None:
        """Execute a statement that returns no rows."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[Any]:
        """Open a unit of work: commit on success, roll back on error."""
        ...

    async def close(self) -> None:
        """Release the connection (and its engine, if owned)."""
        ...


def normalize_url(database_url: str) -> str:
    """Rewrite a plain database URL to its async driver form.

    Example:
        >>> normalize_url("postgres://u:p@host/db")
        'postgresql+asyncpg://u:p@host/db'
        >>> normalize_url("sqlite+aiosqlite:///tmp/x.db")
        'sqlite+aiosqlite:///tmp/x.db'
    """
    scheme, sep, rest = database_url.partition("://")
    if not sep:
        return database_url
    driver = _ASYNC_DRIVERS.get(scheme.lower())
    if driver is None:
        return database_url
    return f"{driver}://{rest}"


def create_async_engine_pooled(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async SQLAlchemy engine with connection pooling.

    Default pool settings (server databases only; SQLite keeps
    SQLAlchemy's own pool choice):

    - ``pool_size=5``: Reasonable default for typical workloads.
    - ``max_overflow=10``: Allow burst connections.
    - ``pool_pre_ping=True``: Validate connections before checkout.
    - ``pool_recycle=300``: Recycle connections every 5 minutes.

    Args:
        database_url: Database URL; plain schemes are normalized with
            ``normalize_url``.
        **kwargs: Additional keyword arguments forwarded to
            ``create_async_engine``.

    Returns:
        Configured ``AsyncEngine``.
    """
    url = normalize_url(database_url)

    defaults: dict[str, Any] = {"echo": False}
    if not url.startswith("sqlite"):
        defaults.update(
            {
                "pool_size": 5,
                "max_overflow": 10,
                "pool_pre_ping": True,
                "pool_recycle": 300,
            }
        )
    if url.startswith("postgresql+asyncpg"):
        defaults["connect_args"] = {"timeout": 5}

    # Caller kwargs override defaults
    merged = {**defaults, **kwargs}

    return create_async_engine(url, **merged)


class SQLAlchemyConnection:
    """``DatabaseConnection`` over a SQLAlchemy ``AsyncConnection``.

    Wrap a connection you already hold, or use ``connect()`` to build a
    pooled engine that this object then owns and disposes on ``close()``.

    Args:
        connection: An open ``AsyncConnection``.
        engine: Engine to dispose on ``close()``; ``None`` when the caller
            owns the engine.

    Example:
        async with engine.connect() as raw:
            conn = SQLAlchemyConnection(raw)
            checkpoint = await create_checkpoint(conn, get_dialect("postgres"))
    """

    def __init__(self, connection: AsyncConnection, engine: AsyncEngine | None = None) -> None:
        self._conn: AsyncConnection = connection
        self._engine: AsyncEngine | None = engine
        self._in_unit: bool = False

    @classmethod
    async def connect(cls, database_url: str, **engine_kwargs: Any) -> "SQLAlchemyConnection":
        """Open a connection on a new pooled engine owned by the result."""
        engine = create_async_engine_pooled(database_url, **engine_kwargs)
        connection = await engine.connect()
        return cls(connection, engine=engine)

    @property
    def dialect_name(self) -> str:
        """SQLAlchemy dialect name (``postgresql``, ``sqlite``, ...)."""
        return self._conn.dialect.name

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        result = await self._conn.execute(text(sql), params or {})
        col_names = list(result.keys())
        rows = [dict(zip(col_names, row)) for row in result.fetchall()]
        if not self._in_unit:
            await self._conn.commit()
        return rows

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> None:
        await self._conn.execute(text(sql), params or {})
        if not self._in_unit:
            await self._conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLAlchemyConnection"]:
        # Close any autobegun transaction so begin() starts a fresh one
        if self._conn.in_transaction():
            await self._conn.commit()
        self._in_unit = True
        try:
            async with self._conn.begin():
                yield self
        finally:
            self._in_unit = False

    async def close(self) -> None:
        await self._conn.close()
        if self._engine is not None:
            await self._engine.dispose()

    async def __aenter__(self) -> "SQLAlchemyConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
