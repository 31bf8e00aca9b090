"""Designate registry: per-server ranks that gate privileged commands.

A designate is a user registered in a server's registry, with or
without full access (the right to designate others). Configured admins
outrank everyone everywhere and are never looked up or stored.

Statuses are ordered, so callers compare against a minimum::

    DesignateStatus.NO_FULL_ACCESS <= status
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Optional

import structlog

from .commands.base import CommandContext, Invocation, report_query_failure
from .commands.results import CommandResult
from .database import Database, Queryable, query_failure
from .exceptions import QueryFailedError
from .permissions import is_valid_snowflake

logger = structlog.get_logger("tigerdyno.security")

SELECT_STATUS = "SELECT full_access FROM designates WHERE snowflake = ? AND server = ?"
INSERT_USER = "INSERT INTO designates (snowflake, full_access, server) VALUES (?, ?, ?)"
UPDATE_USER = "UPDATE designates SET full_access = ? WHERE snowflake = ? AND server = ?"
DELETE_USER = "DELETE FROM designates WHERE snowflake = ? AND server = ?"


class DesignateStatus(IntEnum):
    INVALID_HANDLE = 0
    USER_NOT_IN_REGISTRY = 1
    NO_FULL_ACCESS = 2
    FULL_ACCESS = 3
    USER_IS_ADMIN = 4

    def describe(self) -> str:
        return _STATUS_TEXT[self]


_STATUS_TEXT = {
    DesignateStatus.INVALID_HANDLE: "not a valid user in this server",
    DesignateStatus.USER_NOT_IN_REGISTRY: "not a designate",
    DesignateStatus.NO_FULL_ACCESS: "a designate without full access",
    DesignateStatus.FULL_ACCESS: "a designate with full access",
    DesignateStatus.USER_IS_ADMIN: "a bot admin",
}


class DesignateRemoveResult(str, Enum):
    ALREADY_NOT_IN_REGISTRY = "already_not_in_registry"
    REMOVED = "removed"
    USER_IS_ADMIN = "user_is_admin"
    QUERY_FAILED = "query_failed"
    INVALID_HANDLE = "invalid_handle"


@dataclass(frozen=True)
class DesignateHandle:
    """A user in the context of one server."""

    user: str
    server: str

    @property
    def is_valid(self) -> bool:
        return is_valid_snowflake(self.user) and is_valid_snowflake(self.server)


class DesignateRegistry:
    """Rank lookups and registry changes.

    Args:
        admins: User ids that always resolve to USER_IS_ADMIN.
    """

    def __init__(self, admins: Iterable[str]):
        self._admins = frozenset(str(a) for a in admins)

    def is_admin(self, user: str) -> bool:
        return str(user) in self._admins

    async def resolve_rank(self, handle: DesignateHandle, queryable: Queryable) -> DesignateStatus:
        """Current status of a handle.

        Raises:
            QueryFailedError: If the lookup fails.
        """
        if not handle.is_valid:
            return DesignateStatus.INVALID_HANDLE
        if self.is_admin(handle.user):
            return DesignateStatus.USER_IS_ADMIN

        result = await queryable.query(SELECT_STATUS, (handle.user, handle.server))
        if not result.rows:
            return DesignateStatus.USER_NOT_IN_REGISTRY
        full_access = result.rows[0][0]
        return DesignateStatus.FULL_ACCESS if full_access else DesignateStatus.NO_FULL_ACCESS

    async def set_user(
        self, handle: DesignateHandle, full_access: bool, database: Database
    ) -> Optional[DesignateStatus]:
        """Register a user or change their access.

        Returns:
            The user's new status, or None when a query failed.
        """
        if not handle.is_valid:
            return DesignateStatus.INVALID_HANDLE
        if self.is_admin(handle.user):
            return DesignateStatus.USER_IS_ADMIN

        try:
            async with database.session() as session:
                status = await self.resolve_rank(handle, session)
                if status == DesignateStatus.USER_NOT_IN_REGISTRY:
                    await session.query(INSERT_USER, (handle.user, int(full_access), handle.server))
                else:
                    await session.query(UPDATE_USER, (int(full_access), handle.user, handle.server))
                new_status = await self.resolve_rank(handle, session)
        except QueryFailedError as e:
            query_failure("designate_set_user", e.query, e.params, e)
            return None

        logger.info(
            "designate_set",
            user=handle.user,
            server=handle.server,
            status=new_status.name,
        )
        return new_status

    async def remove_user(self, handle: DesignateHandle, database: Database) -> DesignateRemoveResult:
        if not handle.is_valid:
            return DesignateRemoveResult.INVALID_HANDLE
        if self.is_admin(handle.user):
            return DesignateRemoveResult.USER_IS_ADMIN

        try:
            async with database.session() as session:
                status = await self.resolve_rank(handle, session)
                if status == DesignateStatus.USER_NOT_IN_REGISTRY:
                    return DesignateRemoveResult.ALREADY_NOT_IN_REGISTRY
                await session.query(DELETE_USER, (handle.user, handle.server))
        except QueryFailedError as e:
            query_failure("designate_remove_user", e.query, e.params, e)
            return DesignateRemoveResult.QUERY_FAILED

        logger.info("designate_removed", user=handle.user, server=handle.server)
        return DesignateRemoveResult.REMOVED


async def require_designate(
    invocation: Invocation,
    ctx: CommandContext,
    minimum: DesignateStatus,
    action: str,
) -> Optional[CommandResult]:
    """Check the author's designate status against a minimum.

    Args:
        invocation: The command invocation.
        ctx: Command context holding the registry and database.
        minimum: Lowest status allowed to proceed.
        action: Verb phrase for the denial, e.g. "create tiers".

    Returns:
        None when permitted. Otherwise a terminal result: Unauthorized
        for an insufficient rank, DidNotSucceed(QUERY_FAILED) when the
        lookup failed (already replied to).
    """
    message = invocation.message
    if message.server_id is None:
        return CommandResult.unauthorized(f"you can only {action} in a server.")

    handle = DesignateHandle(user=message.author_id, server=message.server_id)
    try:
        status = await ctx.designates.resolve_rank(handle, ctx.database)
    except QueryFailedError as e:
        return await report_query_failure(invocation, ctx, "require_designate", e)

    if status < minimum:
        logger.info(
            "designate_denied",
            user=handle.user,
            server=handle.server,
            status=status.name,
            required=minimum.name,
        )
        return CommandResult.unauthorized(
            f"you must be {minimum.describe()} or higher to {action} (you are {status.describe()})."
        )
    return None
