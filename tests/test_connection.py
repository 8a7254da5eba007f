"""Tests for URL normalization, engine creation and SQLAlchemyConnection."""

import asyncio

import pytest

from db_reset.connection import (
    SQLAlchemyConnection,
    create_async_engine_pooled,
    normalize_url,
)


class TestNormalizeUrl:
    """Test normalize_url() driver rewriting."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("sqlite:///tmp/x.db", "sqlite+aiosqlite:///tmp/x.db"),
            ("mysql://root@h/db", "mysql+aiomysql://root@h/db"),
            ("mssql://sa@h/db", "mssql+aioodbc://sa@h/db"),
            ("postgresql+asyncpg://u@h/db", "postgresql+asyncpg://u@h/db"),
            ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
            ("not a url", "not a url"),
        ],
    )
    def test_normalize(self, url, expected):
        assert normalize_url(url) == expected


class TestCreateAsyncEnginePooled:
    """Test engine defaults."""

    def test_postgres_pool_defaults(self):
        engine = create_async_engine_pooled("postgresql://u:p@localhost/app")
        try:
            assert engine.url.drivername == "postgresql+asyncpg"
            assert engine.pool.size() == 5
        finally:
            asyncio.run(engine.dispose())

    def test_kwargs_override_defaults(self):
        engine = create_async_engine_pooled("postgresql://u:p@localhost/app", pool_size=2)
        try:
            assert engine.pool.size() == 2
        finally:
            asyncio.run(engine.dispose())

    def test_sqlite_uses_aiosqlite(self, tmp_path):
        engine = create_async_engine_pooled(f"sqlite:///{tmp_path / 'x.db'}")
        try:
            assert engine.url.drivername == "sqlite+aiosqlite"
        finally:
            asyncio.run(engine.dispose())


class TestSQLAlchemyConnection:
    """Test the DatabaseConnection implementation on SQLite."""

    def _url(self, tmp_path) -> str:
        return f"sqlite:///{tmp_path / 'conn.db'}"

    def test_fetch_all_returns_dicts(self, tmp_path):
        async def scenario():
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
                await conn.execute("INSERT INTO t (name) VALUES (:name)", {"name": "ann"})
                return await conn.fetch_all("SELECT id, name FROM t WHERE name = :n", {"n": "ann"})

        assert asyncio.run(scenario()) == [{"id": 1, "name": "ann"}]

    def test_statements_outside_transaction_are_committed(self, tmp_path):
        async def scenario():
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
                await conn.execute("INSERT INTO t (id) VALUES (1)")
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                return await conn.fetch_all("SELECT id FROM t")

        assert asyncio.run(scenario()) == [{"id": 1}]

    def test_transaction_commits(self, tmp_path):
        async def scenario():
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
                async with conn.transaction():
                    await conn.execute("INSERT INTO t (id) VALUES (1)")
                    await conn.execute("INSERT INTO t (id) VALUES (2)")
                return await conn.fetch_all("SELECT COUNT(*) AS n FROM t")

        assert asyncio.run(scenario()) == [{"n": 2}]

    def test_transaction_rolls_back_on_error(self, tmp_path):
        async def scenario():
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
                with pytest.raises(ValueError):
                    async with conn.transaction():
                        await conn.execute("INSERT INTO t (id) VALUES (1)")
                        raise ValueError("abort")
                return await conn.fetch_all("SELECT COUNT(*) AS n FROM t")

        assert asyncio.run(scenario()) == [{"n": 0}]

    def test_dialect_name(self, tmp_path):
        async def scenario():
            async with await SQLAlchemyConnection.connect(self._url(tmp_path)) as conn:
                return conn.dialect_name

        assert asyncio.run(scenario()) == "sqlite"
