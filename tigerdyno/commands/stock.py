"""Commands built into the bot: commands, prefix, designate, info."""

from typing import List

from ..designate import DesignateHandle, DesignateRemoveResult, DesignateStatus, require_designate
from ..exceptions import QueryFailedError
from ..integrations.server_prefixes import MAX_PREFIX_LENGTH, reset_prefix, set_prefix
from .arguments import Boolean, CommandArgument, FreeText, Identity, ValidatedArguments
from .base import (
    BotCommand,
    CommandContext,
    Invocation,
    ParentCommand,
    Subcommand,
    report_query_failure,
    report_system_fault,
)
from .manual import CommandManual
from .results import CommandResult, FailureKind

QUERY_FAILURE_TEXT = "an unknown internal error occurred (query failure)."


class Commands(Subcommand):
    manual = CommandManual(
        name="commands",
        description="Publishes the manual of every command you can use and replies with a link to it.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        if ctx.paste is None:
            reason = "publishing the manual is not configured on this bot."
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.EXTERNAL_SERVICE, reason)

        text = ctx.tree.render_manual(invocation.message, invocation.prefix)
        result = await ctx.paste.create_paste(text)
        if not result.succeeded:
            reason = f"could not publish the manual ({result.error})."
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.EXTERNAL_SERVICE, reason)

        await invocation.reply(f"the manual is at {result.paste.url}")
        return CommandResult.succeeded()


class Info(Subcommand):
    manual = CommandManual(
        name="info",
        description="Describes the bot.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        await invocation.reply(
            "I'm TigerDyno, a bot for managing trickjumps and the roles that go with them. "
            f"Use `{invocation.prefix}commands` for the manual. "
            f"For help with the bot itself, contact {ctx.maintainer_tag}."
        )
        return CommandResult.succeeded()


# ---------------------------------------------------------------------------
# prefix
# ---------------------------------------------------------------------------

class PrefixGet(Subcommand):
    manual = CommandManual(
        name="get",
        description="Replies with the command prefix used in this server.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        await invocation.reply(f"the prefix in this server is `{invocation.prefix}`.")
        return CommandResult.succeeded()


class PrefixSet(Subcommand):
    manual = CommandManual(
        name="set",
        arguments=(
            CommandArgument(
                name="new prefix",
                id="prefix",
                constraint=FreeText(max_length=MAX_PREFIX_LENGTH),
            ),
        ),
        description="Changes the command prefix used in this server.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "change the prefix"
        )
        if denied is not None:
            return denied

        prefix = values["prefix"]
        if any(c.isspace() for c in prefix):
            reason = "the prefix cannot contain spaces."
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.INVALID_ARGUMENTS, reason)

        try:
            await set_prefix(invocation.message.server_id, prefix, ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "PrefixSet", e)

        await invocation.acknowledge()
        return CommandResult.succeeded()


class PrefixReset(Subcommand):
    manual = CommandManual(
        name="reset",
        description="Changes the command prefix in this server back to the default.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "reset the prefix"
        )
        if denied is not None:
            return denied

        try:
            await reset_prefix(invocation.message.server_id, ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "PrefixReset", e)

        await invocation.acknowledge()
        return CommandResult.succeeded()


class Prefix(ParentCommand):
    manual = CommandManual(
        name="prefix",
        subcommands=(PrefixGet.manual, PrefixSet.manual, PrefixReset.manual),
        description="View or change the command prefix of this server.",
    )

    def __init__(self):
        super().__init__([PrefixGet(), PrefixSet(), PrefixReset()])


# ---------------------------------------------------------------------------
# designate
# ---------------------------------------------------------------------------

def _handle_for(invocation: Invocation, user: str) -> DesignateHandle:
    return DesignateHandle(user=user, server=invocation.message.server_id or "")


class DesignateSet(Subcommand):
    manual = CommandManual(
        name="set",
        arguments=(
            CommandArgument(name="user", id="user", constraint=Identity("user")),
            CommandArgument(name="full access", id="full_access", constraint=Boolean()),
        ),
        description=(
            "Makes the user a designate of this server. Designates with full access "
            "can designate others."
        ),
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.FULL_ACCESS, "designate users"
        )
        if denied is not None:
            return denied

        handle = _handle_for(invocation, values["user"])
        status = await ctx.designates.set_user(handle, values["full_access"], ctx.database)
        if status is None:
            return await report_system_fault(invocation, ctx, FailureKind.QUERY_FAILED, QUERY_FAILURE_TEXT)
        if status == DesignateStatus.USER_IS_ADMIN:
            reason = "that user is a bot admin; their status cannot be changed."
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.GENERIC, reason)
        if status == DesignateStatus.INVALID_HANDLE:
            reason = "that is not a valid user."
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.INVALID_ARGUMENTS, reason)

        await invocation.acknowledge()
        return CommandResult.succeeded()


class DesignateRemove(Subcommand):
    manual = CommandManual(
        name="remove",
        arguments=(CommandArgument(name="user", id="user", constraint=Identity("user")),),
        description="Removes the user from this server's designates.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.FULL_ACCESS, "remove designates"
        )
        if denied is not None:
            return denied

        outcome = await ctx.designates.remove_user(_handle_for(invocation, values["user"]), ctx.database)
        if outcome == DesignateRemoveResult.REMOVED:
            await invocation.acknowledge()
            return CommandResult.succeeded()
        if outcome == DesignateRemoveResult.QUERY_FAILED:
            return await report_system_fault(invocation, ctx, FailureKind.QUERY_FAILED, QUERY_FAILURE_TEXT)

        if outcome == DesignateRemoveResult.ALREADY_NOT_IN_REGISTRY:
            reason, failure = "that user is already not a designate.", FailureKind.NOT_FOUND
        elif outcome == DesignateRemoveResult.USER_IS_ADMIN:
            reason, failure = "that user is a bot admin and cannot be removed.", FailureKind.GENERIC
        else:
            reason, failure = "that is not a valid user.", FailureKind.INVALID_ARGUMENTS
        await invocation.reply(reason)
        return CommandResult.did_not_succeed(failure, reason)


class DesignateStatusCommand(Subcommand):
    manual = CommandManual(
        name="status",
        arguments=(
            CommandArgument(name="user", id="user", optional=True, constraint=Identity("user")),
        ),
        description="Replies with your designate status, or that of the given user.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        if invocation.message.server_id is None:
            return CommandResult.unauthorized("designate status only exists within a server.")

        user = values["user"] if values.is_present("user") else invocation.message.author_id
        try:
            status = await ctx.designates.resolve_rank(_handle_for(invocation, user), ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "DesignateStatusCommand", e)

        subject = "you are" if user == invocation.message.author_id else f"<@{user}> is"
        await invocation.reply(f"{subject} {status.describe()}.")
        return CommandResult.succeeded()


class Designate(ParentCommand):
    manual = CommandManual(
        name="designate",
        subcommands=(DesignateSet.manual, DesignateRemove.manual, DesignateStatusCommand.manual),
        description="Manage who may change this server's bot settings.",
    )

    def __init__(self):
        super().__init__([DesignateSet(), DesignateRemove(), DesignateStatusCommand()])


def stock_commands() -> List[BotCommand]:
    """Fresh instances of every stock command, in dispatch order."""
    return [Commands(), Prefix(), Designate(), Info()]
