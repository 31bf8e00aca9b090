"""Tests for the SQLite layer."""

import pytest

from tigerdyno.database import STOCK_TABLES, Database
from tigerdyno.exceptions import DatabaseError, QueryFailedError


@pytest.mark.asyncio
async def test_initialize_creates_system_and_extra_tables(tmp_path):
    db = Database(tmp_path / "nested" / "bot.db")
    await db.initialize(["CREATE TABLE IF NOT EXISTS extra (x INTEGER)"])
    rows = (await db.query("SELECT name FROM sqlite_master WHERE type = 'table'")).rows
    names = {row[0] for row in rows}
    assert set(STOCK_TABLES) <= names
    assert "extra" in names
    assert (tmp_path / "nested" / "bot.db").exists()


@pytest.mark.asyncio
async def test_initialize_is_repeatable(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    await db.initialize()


@pytest.mark.asyncio
async def test_query_returns_tuples_and_metadata(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    inserted = await db.query("INSERT INTO prefixes (server, prefix) VALUES (?, ?)", ("1", "!"))
    assert inserted.rowcount == 1
    assert inserted.lastrowid is not None
    result = await db.query("SELECT server, prefix FROM prefixes")
    assert result.rows == [("1", "!")]
    assert len(result) == 1


@pytest.mark.asyncio
async def test_session_commits(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    async with db.session() as session:
        await session.query("INSERT INTO prefixes (server, prefix) VALUES (?, ?)", ("1", "!"))
        await session.query("INSERT INTO prefixes (server, prefix) VALUES (?, ?)", ("2", "?"))
    assert len(await db.query("SELECT * FROM prefixes")) == 2


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    with pytest.raises(QueryFailedError):
        async with db.session() as session:
            await session.query("INSERT INTO prefixes (server, prefix) VALUES (?, ?)", ("1", "!"))
            await session.query("INSERT INTO no_such_table VALUES (1)")
    assert len(await db.query("SELECT * FROM prefixes")) == 0


@pytest.mark.asyncio
async def test_failed_statement_carries_query_and_params(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    with pytest.raises(QueryFailedError) as exc:
        await db.query("SELECT * FROM missing WHERE id = ?", (5,))
    assert exc.value.query == "SELECT * FROM missing WHERE id = ?"
    assert exc.value.params == (5,)
    assert exc.value.is_system_fault


@pytest.mark.asyncio
async def test_released_session_refuses_queries(tmp_path):
    db = Database(tmp_path / "bot.db")
    await db.initialize()
    async with db.session() as session:
        pass
    with pytest.raises(DatabaseError):
        await session.query("SELECT 1")


@pytest.mark.asyncio
async def test_unopenable_file_raises_query_failure(tmp_path):
    db = Database(tmp_path)
    with pytest.raises(QueryFailedError, match="cannot open database") as exc:
        await db.query("SELECT 1")
    assert exc.value.query == ""
    assert exc.value.is_system_fault
