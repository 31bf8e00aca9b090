"""Restrict a feature's commands to the server's chosen home channel."""

from typing import Collection

import structlog

from ..database import query_failure
from ..exceptions import QueryFailedError
from ..permissions import is_valid_snowflake
from .base import BotCommand, CommandContext, Invocation, report_system_fault
from .results import CommandResult, FailureKind

logger = structlog.get_logger("tigerdyno.security")


class HomeChannelGate:
    """Pre-dispatch gate keyed on a per-server home channel.

    Args:
        feature: Feature name used in replies, e.g. "jumprole".
        lookup_sql: Query taking the server id and returning rows whose
            first column is the home channel id.
        setup_command: Command that chooses the home channel, named in
            the setup hint, e.g. "jumprole choose".
        exempt: Subcommand names that skip the gate.
    """

    def __init__(
        self,
        feature: str,
        lookup_sql: str,
        setup_command: str,
        exempt: Collection[str] = (),
    ):
        self.feature = feature
        self.lookup_sql = lookup_sql
        self.setup_command = setup_command
        self.exempt = frozenset(name.lower() for name in exempt)

    async def __call__(
        self, subcommand: BotCommand, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        if subcommand.name.lower() in self.exempt:
            return CommandResult.pass_through()
        return await self.check(invocation, ctx)

    async def check(self, invocation: Invocation, ctx: CommandContext) -> CommandResult:
        """Decide whether the invocation is in the home channel.

        Returns:
            PassThrough when it is; Unauthorized when another channel
            is home; DidNotSucceed(NOT_CONFIGURED) when no channel was
            chosen; DidNotSucceed(INCONSISTENT_CONFIGURATION) when the
            stored configuration is ambiguous or malformed;
            DidNotSucceed(QUERY_FAILED) when the lookup failed.
        """
        message = invocation.message
        if message.server_id is None:
            return CommandResult.unauthorized(
                f"the {self.feature} commands can only be used in a server."
            )

        try:
            result = await ctx.database.query(self.lookup_sql, (message.server_id,))
        except QueryFailedError as e:
            query_failure(f"{self.feature}_home_channel", e.query, e.params, e)
            return await report_system_fault(
                invocation,
                ctx,
                FailureKind.QUERY_FAILED,
                "an unknown internal error occurred (query failure).",
            )

        rows = result.rows
        if not rows:
            hint = (
                f"this server has not chosen a {self.feature} commands channel. Have a user "
                f"with designate privileges choose one, using `{invocation.prefix}{self.setup_command}`. "
                f"You can see available syntaxes using `{invocation.prefix}commands`."
            )
            await invocation.reply(hint)
            return CommandResult.did_not_succeed(FailureKind.NOT_CONFIGURED, hint)

        if len(rows) > 1:
            logger.error(
                "home_channel_ambiguous",
                feature=self.feature,
                server=message.server_id,
                rows=len(rows),
            )
            return await report_system_fault(
                invocation,
                ctx,
                FailureKind.INCONSISTENT_CONFIGURATION,
                f"this server has somehow chosen multiple {self.feature} commands channels.",
            )

        channel_id = rows[0][0]
        if not is_valid_snowflake(channel_id):
            logger.error(
                "home_channel_invalid",
                feature=self.feature,
                server=message.server_id,
                value=repr(channel_id),
            )
            return await report_system_fault(
                invocation,
                ctx,
                FailureKind.INCONSISTENT_CONFIGURATION,
                "an internal error occurred (the stored channel is not a valid id).",
            )

        if str(channel_id) != str(message.channel_id):
            exception = ""
            if self.exempt:
                exception = f" (with the exception of {', '.join(sorted(self.exempt))})"
            return CommandResult.unauthorized(
                f"you must use the {self.feature} commands{exception} in the server's "
                f"{self.feature} commands channel (<#{channel_id}>)."
            )
        return CommandResult.pass_through()
