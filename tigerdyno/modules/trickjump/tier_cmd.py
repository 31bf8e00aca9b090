"""The ``tier`` command: manage jumprole tiers of a server."""

from ...commands.arguments import UINT4, CommandArgument, FreeText, ValidatedArguments
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
from .models import NAME_LIMIT
from .tables import GET_SERVER_JUMPROLE_CHANNEL
from .tiers import TierOutcome, create_tier, delete_tier, list_tiers, update_tier

TIER_NAME = CommandArgument(
    name="name", id="name", constraint=FreeText(max_length=NAME_LIMIT), marker="NAME"
)
TIER_RANK = CommandArgument(name="rank number", id="ordinal", constraint=UINT4, marker="RANK")


class TierCreate(Subcommand):
    manual = CommandManual(
        name="create",
        arguments=(TIER_NAME, TIER_RANK),
        description="Creates a tier which may include jumproles. The higher the rank number, the higher the tier.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "create tiers")
        if denied is not None:
            return denied

        try:
            outcome, tier = await create_tier(
                invocation.message.server_id, values["name"], values["ordinal"], ctx.database
            )
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "TierCreate", e)

        if outcome == TierOutcome.TIER_ALREADY_EXISTS:
            reason = (
                f"a tier with this name already exists. Please use `{invocation.prefix}tier update` "
                "to change an existing tier's rank number."
            )
        elif outcome == TierOutcome.ORDINAL_ALREADY_IN_USE:
            reason = (
                f"the tier {tier.name} already has that rank number. View tiers and their rank "
                f"numbers using `{invocation.prefix}tier list`."
            )
        else:
            await invocation.acknowledge()
            return CommandResult.succeeded()

        await invocation.reply(reason)
        return CommandResult.did_not_succeed(FailureKind.ALREADY_EXISTS, reason)


class TierUpdate(Subcommand):
    manual = CommandManual(
        name="update",
        arguments=(TIER_NAME, TIER_RANK),
        description="Changes the rank number of an existing tier.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "update tiers")
        if denied is not None:
            return denied

        try:
            outcome, tier = await update_tier(
                invocation.message.server_id, values["name"], values["ordinal"], ctx.database
            )
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "TierUpdate", e)

        if outcome == TierOutcome.NOT_FOUND:
            reason = f'no tier named "{values["name"]}" exists in this server.'
            failure = FailureKind.NOT_FOUND
        elif outcome == TierOutcome.ORDINAL_ALREADY_IN_USE:
            reason = f"the tier {tier.name} already has that rank number."
            failure = FailureKind.ALREADY_EXISTS
        else:
            await invocation.acknowledge()
            return CommandResult.succeeded()

        await invocation.reply(reason)
        return CommandResult.did_not_succeed(failure, reason)


class TierDelete(Subcommand):
    manual = CommandManual(
        name="delete",
        arguments=(TIER_NAME,),
        description="Deletes a tier that no jumprole belongs to.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        denied = await require_designate(invocation, ctx, DesignateStatus.NO_FULL_ACCESS, "delete tiers")
        if denied is not None:
            return denied

        try:
            outcome, in_use = await delete_tier(invocation.message.server_id, values["name"], ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "TierDelete", e)

        if outcome == TierOutcome.NOT_FOUND:
            reason = f'no tier named "{values["name"]}" exists in this server.'
            failure = FailureKind.NOT_FOUND
        elif outcome == TierOutcome.TIER_IN_USE:
            reason = f"{in_use} jumprole(s) still belong to this tier. Remove or move them first."
            failure = FailureKind.GENERIC
        else:
            await invocation.acknowledge()
            return CommandResult.succeeded()

        await invocation.reply(reason)
        return CommandResult.did_not_succeed(failure, reason)


class TierList(Subcommand):
    manual = CommandManual(
        name="list",
        description="Lists the tiers of this server, highest first.",
    )

    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        try:
            tiers = await list_tiers(invocation.message.server_id, ctx.database)
        except QueryFailedError as e:
            return await report_query_failure(invocation, ctx, "TierList", e)

        if not tiers:
            await invocation.reply("this server has no tiers yet.")
        else:
            lines = "\n".join(f"{tier.ordinal}: {tier.name}" for tier in tiers)
            await invocation.reply(f"tiers in this server:\n{lines}")
        return CommandResult.succeeded()


class TierCommand(ParentCommand):
    manual = CommandManual(
        name="tier",
        subcommands=(TierCreate.manual, TierUpdate.manual, TierDelete.manual, TierList.manual),
        description="Manage jumprole tiers in the current server.",
    )

    def __init__(self):
        super().__init__([TierCreate(), TierUpdate(), TierDelete(), TierList()])
        self.gate = HomeChannelGate("jumprole", GET_SERVER_JUMPROLE_CHANNEL, "jumprole choose")

    async def pre_dispatch(
        self, subcommand: BotCommand, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        return await self.gate(subcommand, invocation, ctx)
