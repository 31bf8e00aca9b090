"""Jumprole storage. Same session discipline as tiers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

import structlog
from pydantic import BaseModel

from ...database import Database, Queryable
from .models import Jumprole
from .tiers import get_tier

logger = structlog.get_logger("tigerdyno.modules")

GET_JUMPROLE_BY_NAME = f"SELECT {Jumprole.COLUMNS} FROM trickjump_jumps WHERE name = ? AND server = ?"
GET_JUMPROLE_BY_ID = f"SELECT {Jumprole.COLUMNS} FROM trickjump_jumps WHERE id = ?"
INSERT_JUMPROLE = """
    INSERT INTO trickjump_jumps
        (name, kingdom, location, jump_type, link, description, tier_id, added_by, server, updated_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""
DELETE_JUMPROLE = "DELETE FROM trickjump_jumps WHERE id = ?"


class JumproleOutcome(str, Enum):
    SUCCESS = "success"
    JUMPROLE_ALREADY_EXISTS = "jumprole_already_exists"
    TIER_NOT_FOUND = "tier_not_found"
    NOT_FOUND = "not_found"


class JumproleDraft(BaseModel):
    """Validated user input for a new jumprole; the tier is named, not resolved."""

    name: str
    tier: str
    description: str
    server: str
    added_by: str
    kingdom: Optional[str] = None
    location: Optional[str] = None
    jump_type: Optional[str] = None
    link: Optional[str] = None


async def get_jumprole(name: str, server: str, queryable: Queryable) -> Optional[Jumprole]:
    result = await queryable.query(GET_JUMPROLE_BY_NAME, (name, server))
    return Jumprole.from_row(result.rows[0]) if result.rows else None


async def create_jumprole(
    draft: JumproleDraft, database: Database
) -> Tuple[JumproleOutcome, Optional[Jumprole]]:
    """Resolve the tier and insert the jumprole if its name is free.

    Returns:
        (outcome, jumprole). On JUMPROLE_ALREADY_EXISTS the jumprole is
        the existing one.
    """
    async with database.session() as session:
        tier = await get_tier(draft.tier, draft.server, session)
        if tier is None:
            return JumproleOutcome.TIER_NOT_FOUND, None
        existing = await get_jumprole(draft.name, draft.server, session)
        if existing is not None:
            return JumproleOutcome.JUMPROLE_ALREADY_EXISTS, existing

        params = (
            draft.name,
            draft.kingdom,
            draft.location,
            draft.jump_type,
            draft.link,
            draft.description,
            tier.id,
            draft.added_by,
            draft.server,
            datetime.now(timezone.utc).isoformat(),
        )
        inserted = await session.query(INSERT_JUMPROLE, params)
        created = await session.query(GET_JUMPROLE_BY_ID, (inserted.lastrowid,))
        jumprole = Jumprole.from_row(created.rows[0])

    logger.info(
        "jumprole_created",
        server=draft.server,
        jumprole=draft.name,
        tier=tier.name,
        added_by=draft.added_by,
    )
    return JumproleOutcome.SUCCESS, jumprole


async def remove_jumprole(name: str, server: str, database: Database) -> JumproleOutcome:
    async with database.session() as session:
        jumprole = await get_jumprole(name, server, session)
        if jumprole is None:
            return JumproleOutcome.NOT_FOUND
        await session.query(DELETE_JUMPROLE, (jumprole.id,))

    logger.info("jumprole_removed", server=server, jumprole=name)
    return JumproleOutcome.SUCCESS
