"""SQLite persistence for tigerdyno.

The command framework only needs ``query(sql, params) -> rows``. This
module supplies it over SQLite, running statements in worker threads
so the event loop keeps serving other messages.

Multi-step operations (look up, then mutate) borrow a ``Session``: one
connection opened on entry, committed on success, rolled back on
exception and closed on every exit path.

Key classes:
    Database: Owns the database file and hands out sessions.
    Session: A borrowed connection with the same ``query`` interface.
    QueryResult: Rows as plain tuples plus cursor metadata.

Key functions:
    query_failure: Log a failed statement with its parameters.
"""

import asyncio
import sqlite3
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence, Tuple

import structlog

from .exceptions import DatabaseError, QueryFailedError

logger = structlog.get_logger("tigerdyno.database")

# Tables owned by the bot itself. Modules may not claim these names.
SYSTEM_SCHEMA: Dict[str, str] = {
    "prefixes": """
        CREATE TABLE IF NOT EXISTS prefixes (
            server TEXT NOT NULL,
            prefix TEXT NOT NULL
        )
    """,
    "designates": """
        CREATE TABLE IF NOT EXISTS designates (
            snowflake TEXT NOT NULL,
            full_access INTEGER NOT NULL DEFAULT 0,
            server TEXT NOT NULL
        )
    """,
}

STOCK_TABLES = tuple(SYSTEM_SCHEMA)


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one statement. Rows are plain tuples."""

    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: Optional[int] = None

    def __len__(self) -> int:
        return len(self.rows)


class Queryable(Protocol):
    """Anything that can run one statement: a Database or a Session."""

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        ...


def query_failure(function_name: str, query: str, params: Sequence[Any], err: Any) -> None:
    """Log a failed statement at error severity for operators."""
    logger.error(
        "query_failed",
        function=function_name,
        query=" ".join(query.split()),
        params=[repr(p) for p in params],
        error=str(err),
    )


class Session:
    """A borrowed connection. Only valid inside ``Database.session()``."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self.released = False

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        if self.released:
            raise DatabaseError("query on a released session", operation="query")
        return await asyncio.to_thread(self._execute_sync, sql, tuple(params))

    def _execute_sync(self, sql: str, params: Tuple[Any, ...]) -> QueryResult:
        try:
            cursor = self._conn.execute(sql, params)
            rows = [tuple(row) for row in cursor.fetchall()]
            return QueryResult(rows=rows, rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)
        except sqlite3.Error as e:
            raise QueryFailedError(str(e), query=sql, params=params) from e

    def release(self) -> None:
        self.released = True


class Database:
    """SQLite database file plus session management.

    Args:
        db_path: Path to the database file. Parent directories are
            created on initialize().
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path

    async def initialize(self, schemas: Sequence[str] = ()) -> None:
        """Create system tables and any extra module tables."""
        await asyncio.to_thread(self.db_path.parent.mkdir, parents=True, exist_ok=True)
        async with self.session() as session:
            await session.query("PRAGMA journal_mode=WAL")
            for ddl in (*SYSTEM_SCHEMA.values(), *schemas):
                await session.query(ddl)
        logger.info("database_initialized", path=str(self.db_path), extra_tables=len(schemas))

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.execute("PRAGMA busy_timeout=5000")
            return conn
        except sqlite3.Error as e:
            # Surfaces like a failed statement so callers handle one error type
            raise QueryFailedError(
                f"cannot open database: {e}", query="", params=(), path=str(self.db_path)
            ) from e

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Session]:
        """Borrow one connection for a multi-step operation.

        Commits when the block exits normally and rolls back when it
        raises. The connection is closed on every exit path.

        Raises:
            QueryFailedError: If the database file cannot be opened.
        """
        conn = await asyncio.to_thread(self._connect)
        session = Session(conn)
        try:
            yield session
        except BaseException:
            await asyncio.to_thread(conn.rollback)
            raise
        else:
            await asyncio.to_thread(conn.commit)
        finally:
            session.release()
            await asyncio.to_thread(conn.close)

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run a single statement in its own short-lived session."""
        async with self.session() as session:
            return await session.query(sql, params)
