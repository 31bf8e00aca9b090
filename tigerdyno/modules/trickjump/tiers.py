"""Tier storage.

Mutations look up first and mutate second inside one session, so a
duplicate is reported without ever attempting the insert. Statement
failures propagate as QueryFailedError.
"""

from enum import Enum
from typing import List, Optional, Tuple

import structlog

from ...database import Database, Queryable
from .models import Tier

logger = structlog.get_logger("tigerdyno.modules")

GET_TIER_BY_NAME = f"SELECT {Tier.COLUMNS} FROM trickjump_tiers WHERE name = ? AND server = ?"
GET_TIER_BY_ORDINAL = f"SELECT {Tier.COLUMNS} FROM trickjump_tiers WHERE ordinal = ? AND server = ?"
GET_TIER_BY_ID = f"SELECT {Tier.COLUMNS} FROM trickjump_tiers WHERE id = ?"
LIST_TIERS = f"SELECT {Tier.COLUMNS} FROM trickjump_tiers WHERE server = ? ORDER BY ordinal DESC"
INSERT_TIER = "INSERT INTO trickjump_tiers (name, ordinal, server) VALUES (?, ?, ?)"
UPDATE_TIER_ORDINAL = "UPDATE trickjump_tiers SET ordinal = ? WHERE id = ?"
DELETE_TIER = "DELETE FROM trickjump_tiers WHERE id = ?"
COUNT_TIER_JUMPS = "SELECT COUNT(*) FROM trickjump_jumps WHERE tier_id = ?"


class TierOutcome(str, Enum):
    SUCCESS = "success"
    TIER_ALREADY_EXISTS = "tier_already_exists"
    ORDINAL_ALREADY_IN_USE = "ordinal_already_in_use"
    NOT_FOUND = "not_found"
    TIER_IN_USE = "tier_in_use"


async def get_tier(name: str, server: str, queryable: Queryable) -> Optional[Tier]:
    result = await queryable.query(GET_TIER_BY_NAME, (name, server))
    return Tier.from_row(result.rows[0]) if result.rows else None


async def get_tier_by_ordinal(ordinal: int, server: str, queryable: Queryable) -> Optional[Tier]:
    result = await queryable.query(GET_TIER_BY_ORDINAL, (ordinal, server))
    return Tier.from_row(result.rows[0]) if result.rows else None


async def list_tiers(server: str, queryable: Queryable) -> List[Tier]:
    """Tiers of a server, highest first."""
    result = await queryable.query(LIST_TIERS, (server,))
    return [Tier.from_row(row) for row in result.rows]


async def create_tier(
    server: str, name: str, ordinal: int, database: Database
) -> Tuple[TierOutcome, Optional[Tier]]:
    """Create a tier unless its name or rank number is taken.

    Returns:
        (outcome, tier). On TIER_ALREADY_EXISTS and
        ORDINAL_ALREADY_IN_USE the tier is the existing one.
    """
    async with database.session() as session:
        existing = await get_tier(name, server, session)
        if existing is not None:
            return TierOutcome.TIER_ALREADY_EXISTS, existing
        holder = await get_tier_by_ordinal(ordinal, server, session)
        if holder is not None:
            return TierOutcome.ORDINAL_ALREADY_IN_USE, holder

        inserted = await session.query(INSERT_TIER, (name, ordinal, server))
        created = await session.query(GET_TIER_BY_ID, (inserted.lastrowid,))
        tier = Tier.from_row(created.rows[0])

    logger.info("tier_created", server=server, tier=name, ordinal=ordinal)
    return TierOutcome.SUCCESS, tier


async def update_tier(
    server: str, name: str, ordinal: int, database: Database
) -> Tuple[TierOutcome, Optional[Tier]]:
    """Change an existing tier's rank number."""
    async with database.session() as session:
        tier = await get_tier(name, server, session)
        if tier is None:
            return TierOutcome.NOT_FOUND, None
        holder = await get_tier_by_ordinal(ordinal, server, session)
        if holder is not None and holder.id != tier.id:
            return TierOutcome.ORDINAL_ALREADY_IN_USE, holder
        if tier.ordinal != ordinal:
            await session.query(UPDATE_TIER_ORDINAL, (ordinal, tier.id))

    logger.info("tier_updated", server=server, tier=name, ordinal=ordinal)
    return TierOutcome.SUCCESS, tier.model_copy(update={"ordinal": ordinal})


async def delete_tier(server: str, name: str, database: Database) -> Tuple[TierOutcome, int]:
    """Delete a tier that no jumprole belongs to.

    Returns:
        (outcome, number of jumproles still in the tier).
    """
    async with database.session() as session:
        tier = await get_tier(name, server, session)
        if tier is None:
            return TierOutcome.NOT_FOUND, 0
        counted = await session.query(COUNT_TIER_JUMPS, (tier.id,))
        in_use = counted.rows[0][0] if counted.rows else 0
        if in_use:
            return TierOutcome.TIER_IN_USE, in_use
        await session.query(DELETE_TIER, (tier.id,))

    logger.info("tier_deleted", server=server, tier=name)
    return TierOutcome.SUCCESS, 0
