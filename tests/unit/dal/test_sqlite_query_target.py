import sqlite3
from contextlib import asynccontextmanager

import pytest

from dal.sqlite.query_target import SqliteQueryTargetDatabase


@asynccontextmanager
async def _connected(db_path):
    await SqliteQueryTargetDatabase.init(db_path)
    try:
        async with SqliteQueryTargetDatabase.get_connection() as conn:
            yield conn
    finally:
        await SqliteQueryTargetDatabase.close()


@pytest.mark.asyncio
async def test_sqlite_query_target_select_one(tmp_path):
    """Ensure SQLite query target can execute a basic SELECT."""
    async with _connected(str(tmp_path / "query_target.db")) as conn:
        rows = await conn.fetch("SELECT 1 AS value")

    assert rows == [{"value": 1}]


@pytest.mark.asyncio
async def test_sqlite_memory_database_is_shared_across_connections():
    """:memory: targets stay alive between connections for the process lifetime."""
    await SqliteQueryTargetDatabase.init(":memory:")
    try:
        async with SqliteQueryTargetDatabase.get_connection() as conn:
            await conn.execute("CREATE TABLE test_mem (id INTEGER PRIMARY KEY, name TEXT)")
            await conn.execute("INSERT INTO test_mem (id, name) VALUES ($1, $2)", 1, "Alice")

        async with SqliteQueryTargetDatabase.get_connection() as conn:
            rows = await conn.fetch("SELECT id, name FROM test_mem WHERE id = $1", 1)
    finally:
        await SqliteQueryTargetDatabase.close()

    assert rows == [{"id": 1, "name": "Alice"}]


@pytest.mark.asyncio
async def test_sqlite_execute_reports_status_and_last_insert_id(tmp_path):
    """execute returns asyncpg-style status strings and tracks the last rowid."""
    async with _connected(str(tmp_path / "status.db")) as conn:
        await conn.execute('CREATE TABLE "t" ("id" INTEGER PRIMARY KEY, "name" TEXT)')
        status = await conn.execute('INSERT INTO "t" ("name") VALUES ($1), ($2)', "a", "b")
        assert status == "INSERT 0 2"
        assert conn.last_insert_id == 2

        status = await conn.execute('UPDATE "t" SET "name" = $1 WHERE "id" = $2', "z", 1)
        assert status == "UPDATE 1"
        status = await conn.execute('DELETE FROM "t" WHERE "id" = $1', 99)
        assert status == "DELETE 0"


@pytest.mark.asyncio
async def test_sqlite_fetchrow_and_fetchval(tmp_path):
    """fetchrow returns a dict or None; fetchval returns the first column."""
    async with _connected(str(tmp_path / "fetch.db")) as conn:
        await conn.execute("CREATE TABLE t (id INTEGER)")
        await conn.execute("INSERT INTO t (id) VALUES ($1)", 42)

        assert await conn.fetchrow("SELECT id FROM t WHERE id = $1", 42) == {"id": 42}
        assert await conn.fetchrow("SELECT id FROM t WHERE id = $1", 999) is None
        assert await conn.fetchval("SELECT COUNT(*) AS n FROM t") == 1


@pytest.mark.asyncio
async def test_sqlite_transaction_rolls_back_on_error(tmp_path):
    """A failure inside transaction() leaves no partial writes."""
    async with _connected(str(tmp_path / "tx.db")) as conn:
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT NOT NULL)")
        with pytest.raises(RuntimeError):
            async with conn.transaction():
                await conn.execute("INSERT INTO t (v) VALUES ($1)", "discarded")
                raise RuntimeError("abort")
        assert await conn.fetchval("SELECT COUNT(*) FROM t") == 0

        async with conn.transaction():
            await conn.execute("INSERT INTO t (v) VALUES ($1)", "committed")
        assert await conn.fetchval("SELECT COUNT(*) FROM t") == 1


@pytest.mark.asyncio
async def test_sqlite_foreign_keys_are_enforced(tmp_path):
    """Connections enable foreign-key enforcement."""
    async with _connected(str(tmp_path / "fk.db")) as conn:
        await conn.execute("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
        await conn.execute(
            "CREATE TABLE child (id INTEGER PRIMARY KEY, parent_id INTEGER REFERENCES parent(id))"
        )
        with pytest.raises(sqlite3.IntegrityError):
            await conn.execute("INSERT INTO child (parent_id) VALUES ($1)", 5)


@pytest.mark.asyncio
async def test_get_connection_requires_init():
    """Using the target before init fails loudly."""
    await SqliteQueryTargetDatabase.close()
    with pytest.raises(RuntimeError, match="not initialized"):
        async with SqliteQueryTargetDatabase.get_connection():
            pass


@pytest.mark.asyncio
async def test_sqlite_snapshot_wraps_reads_in_a_transaction(tmp_path):
    """Reads inside snapshot() run in a transaction that ends cleanly."""
    async with _connected(str(tmp_path / "snap.db")) as conn:
        await conn.execute("CREATE TABLE t (id INTEGER)")
        await conn.execute("INSERT INTO t (id) VALUES ($1)", 1)

        async with conn.snapshot():
            rows = await conn.fetch("SELECT id FROM t")
            total = await conn.fetchval("SELECT COUNT(*) FROM t")

        assert rows == [{"id": 1}]
        assert total == 1
        async with conn.transaction():
            await conn.execute("INSERT INTO t (id) VALUES ($1)", 2)
        assert await conn.fetchval("SELECT COUNT(*) FROM t") == 2
