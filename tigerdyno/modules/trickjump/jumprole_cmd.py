"""The ``jumprole`` command: choose the home channel and manage jumproles."""

from ...commands.arguments import ABSENT, Choice, CommandArgument, FreeText, Identity, ValidatedArguments
from ...commands.base import (
    BotCommand,
    CommandContext,
    Invocation,
    ParentCommand,
    Subcommand,
    report_query_failure,
)
from ...commands.channel_gate import HomeChannelGate
from ...commands.manual import CommandManual
from ...commands.results import CommandResult, FailureKind
from ...designate import DesignateStatus, require_designate
from ...exceptions import QueryFailedError
from .jumproles import JumproleDraft, JumproleOutcome, create_jumprole, remove_jumprole
from .models import (
    DESCRIPTION_LIMIT,
    JUMP_TYPE_LIMIT,
    KINGDOM_NAMES,
    LINK_LIMIT,
    LOCATION_LIMIT,
    NAME_LIMIT,
)
from .tables import GET_SERVER_JUMPROLE_CHANNEL, UPSERT_SERVER_JUMPROLE_CHANNEL


class JumproleChoose(Subcommand):
    manual = CommandManual(
        name="choose",
        arguments=(CommandArgument(name="channel", id="channel", constraint=Identity("channel")),),
        description=(
            "Designates the given channel as the server's channel for all jumprole "
            "and tier commands (except this one)."
        ),
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "change the server jumprole channel"
        )
        if denied is not None:
            return denied

        try:
            await ctx.database.query(
                UPSERT_SERVER_JUMPROLE_CHANNEL, (invocation.message.server_id, values["channel"])
            )
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "JumproleChoose", e)

        await invocation.acknowledge()
        return CommandResult.succeeded()


def _optional(values: ValidatedArguments, key: str):
    value = values[key]
    return None if value is ABSENT else value


class JumproleCreate(Subcommand):
    manual = CommandManual(
        name="create",
        arguments=(
            CommandArgument(
                name="name", id="name", constraint=FreeText(max_length=NAME_LIMIT), marker="NAME"
            ),
            CommandArgument(
                name="tier", id="tier", constraint=FreeText(max_length=NAME_LIMIT), marker="TIER"
            ),
            CommandArgument(
                name="kingdom",
                id="kingdom",
                optional=True,
                constraint=Choice(KINGDOM_NAMES),
                marker="KINGDOM",
            ),
            CommandArgument(
                name="location",
                id="location",
                optional=True,
                constraint=FreeText(max_length=LOCATION_LIMIT),
                marker="LOCATION",
            ),
            CommandArgument(
                name="jump type",
                id="jump_type",
                optional=True,
                constraint=FreeText(max_length=JUMP_TYPE_LIMIT),
                marker="JUMP TYPE",
            ),
            CommandArgument(
                name="link",
                id="link",
                optional=True,
                constraint=FreeText(max_length=LINK_LIMIT),
                marker="LINK",
            ),
            CommandArgument(
                name="description",
                id="description",
                constraint=FreeText(max_length=DESCRIPTION_LIMIT),
                marker="INFO",
            ),
        ),
        description="Creates a jumprole with the specified properties in the given tier.",
        compact_syntaxes=True,
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "create jumproles"
        )
        if denied is not None:
            return denied

        draft = JumproleDraft(
            name=values["name"],
            tier=values["tier"],
            description=values["description"],
            server=invocation.message.server_id,
            added_by=invocation.message.author_id,
            kingdom=_optional(values, "kingdom"),
            location=_optional(values, "location"),
            jump_type=_optional(values, "jump_type"),
            link=_optional(values, "link"),
        )
        try:
            outcome, _ = await create_jumprole(draft, ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "JumproleCreate", e)

        if outcome == JumproleOutcome.TIER_NOT_FOUND:
            reason = (
                f'no tier named "{draft.tier}" exists in this server. '
                f"View tiers using `{invocation.prefix}tier list`."
            )
            failure = FailureKind.NOT_FOUND
        elif outcome == JumproleOutcome.JUMPROLE_ALREADY_EXISTS:
            reason = "a jumprole with that name already exists."
            failure = FailureKind.ALREADY_EXISTS
        else:
            await invocation.acknowledge()
            return CommandResult.succeeded()

        await invocation.reply(reason)
        return CommandResult.did_not_succeed(failure, reason)


class JumproleRemove(Subcommand):
    manual = CommandManual(
        name="remove",
        arguments=(CommandArgument(name="name", id="name", constraint=FreeText(max_length=NAME_LIMIT)),),
        description="Removes the given jumprole.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(
            invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "remove jumproles"
        )
        if denied is not None:
            return denied

        try:
            outcome = await remove_jumprole(values["name"], invocation.message.server_id, ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "JumproleRemove", e)

        if outcome == JumproleOutcome.NOT_FOUND:
            reason = f'no jumprole named "{values["name"]}" exists in this server.'
            await invocation.reply(reason)
            return CommandResult.did_not_succeed(FailureKind.NOT_FOUND, reason)

        await invocation.acknowledge()
        return CommandResult.succeeded()


class JumproleCommand(ParentCommand):
    manual = CommandManual(
        name="jumprole",
        subcommands=(JumproleChoose.manual, JumproleCreate.manual, JumproleRemove.manual),
        description="Manage jumproles in the current server.",
    )

    def __init__(self):
        super().__init__([JumproleChoose(), JumproleCreate(), JumproleRemove()])
        self.gate = HomeChannelGate(
            "jumprole", GET_SERVER_JUMPROLE_CHANNEL, "jumprole choose", exempt=("choose",)
        )

    async def pre_dispatch(
        self, subcommand: BotCommand, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        return await self.gate(subcommand, invocation, ctx)
