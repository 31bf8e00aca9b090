"""Per-server command prefixes stored in the ``prefixes`` table."""

from typing import Optional

import structlog

from ..database import Database, Queryable, query_failure
from ..exceptions import QueryFailedError

logger = structlog.get_logger("tigerdyno.database")

GET_PREFIX = "SELECT prefix FROM prefixes WHERE server = ?"
INSERT_PREFIX = "INSERT INTO prefixes (server, prefix) VALUES (?, ?)"
UPDATE_PREFIX = "UPDATE prefixes SET prefix = ? WHERE server = ?"
DELETE_PREFIX = "DELETE FROM prefixes WHERE server = ?"

MAX_PREFIX_LENGTH = 16


async def get_prefix(server_id: Optional[str], queryable: Queryable, global_prefix: str) -> str:
    """Prefix in effect for a server.

    Falls back to the global prefix outside servers, for servers without
    a stored prefix, and (logged at error) when the lookup fails or is
    ambiguous.
    """
    if server_id is None:
        return global_prefix
    try:
        result = await queryable.query(GET_PREFIX, (server_id,))
    except QueryFailedError as e:
        query_failure("get_prefix", e.query, e.params, e)
        return global_prefix

    if not result.rows:
        return global_prefix
    if len(result.rows) > 1:
        logger.error("prefix_ambiguous", server=server_id, rows=len(result.rows))
        return global_prefix
    return str(result.rows[0][0])


async def set_prefix(server_id: str, prefix: str, database: Database) -> None:
    """Store a server's prefix, replacing any existing one.

    Raises:
        QueryFailedError: If a statement fails. Nothing is changed.
    """
    async with database.session() as session:
        result = await session.query(GET_PREFIX, (server_id,))
        if result.rows:
            await session.query(UPDATE_PREFIX, (prefix, server_id))
        else:
            await session.query(INSERT_PREFIX, (server_id, prefix))
    logger.info("prefix_set", server=server_id, prefix=prefix)


async def reset_prefix(server_id: str, database: Database) -> bool:
    """Forget a server's prefix.

    Returns:
        Whether a stored prefix was removed.

    Raises:
        QueryFailedError: If the statement fails.
    """
    result = await database.query(DELETE_PREFIX, (server_id,))
    removed = result.rowcount > 0
    logger.info("prefix_reset", server=server_id, removed=removed)
    return removed
