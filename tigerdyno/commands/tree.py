"""The root of the command tree.

Built once at start-up from the stock commands and the loaded modules,
then asked to handle every inbound message. Non-commands are ignored
without a reply; the tree itself is immutable after construction.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import structlog

from ..integrations.server_prefixes import get_prefix
from ..permissions import allowed
from .base import (
    BotCommand,
    CommandContext,
    InboundMessage,
    Invocation,
    ParentCommand,
    Responder,
    report_system_fault,
)
from .dispatcher import Dispatcher
from .manual import indent
from .results import CommandResult, FailureKind, ResultType

if TYPE_CHECKING:
    from ..module_loader import BotModule

logger = structlog.get_logger("tigerdyno.commands")

BOT_NAME = "TigerDyno"


class CommandTree:
    """Top-level dispatcher plus the reply policy for whole messages.

    Args:
        stock_commands: Commands built into the bot, tried first.
        modules: Loaded feature modules, tried in order after them.
    """

    def __init__(self, stock_commands: Sequence[BotCommand], modules: Sequence["BotModule"] = ()):
        self.stock_commands: Tuple[BotCommand, ...] = tuple(stock_commands)
        self.modules: Tuple["BotModule", ...] = tuple(modules)

        self._owners: Dict[str, "BotModule"] = {}
        commands: List[BotCommand] = list(self.stock_commands)
        for module in self.modules:
            for command in module.commands:
                self._owners[command.name.lower()] = module
                commands.append(command)
        self.dispatcher = Dispatcher(commands)

    def owner_of(self, command: BotCommand) -> Optional["BotModule"]:
        return self._owners.get(command.name.lower())

    async def _module_gate(
        self, command: BotCommand, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        module = self.owner_of(command)
        if module is not None and not allowed(invocation.message, module.permissions):
            return CommandResult.unauthorized(
                f"the {module.name} module is not available here."
            )
        return CommandResult.pass_through()

    async def _greet(self, responder: Responder, prefix: str) -> None:
        greeting = (
            f"Hi! I'm {BOT_NAME}. Use `{prefix}info` to learn more about me "
            f"and `{prefix}commands` for the list of commands."
        )
        try:
            await responder.send(greeting)
        except Exception as e:
            logger.error("reply_failed", error=str(e), kind="greeting")

    async def process_message(
        self, message: InboundMessage, responder: Responder, ctx: CommandContext
    ) -> Optional[CommandResult]:
        """Handle one inbound message.

        Returns:
            The outcome of the matched command, or None when the message
            is not a command.
        """
        prefix = await get_prefix(message.server_id, ctx.database, ctx.config.global_prefix)
        text = message.raw_text.lstrip()

        if not text.lower().startswith(prefix.lower()):
            if message.mentions_bot:
                await self._greet(responder, prefix)
            return None

        root = Invocation(message, responder, prefix, (), text[len(prefix):])
        found = self.dispatcher.find(root.remainder)
        if found is None:
            if message.mentions_bot:
                await self._greet(responder, prefix)
            return None
        command, remainder = found
        invocation = root.descend(command.name, remainder)

        try:
            result = await self.dispatcher.try_children(root, ctx, gate=self._module_gate)
        except Exception as e:
            logger.exception(
                "command_crashed",
                path=invocation.command_text,
                error=str(e),
                error_type=type(e).__name__,
            )
            result = await report_system_fault(
                invocation, ctx, FailureKind.GENERIC, "an unexpected internal error occurred."
            )

        if result.type == ResultType.UNAUTHORIZED:
            # Answer as the node that refused, e.g. "%tier create: ..."
            refusing = replace(invocation, path=result.path) if result.path else invocation
            await refusing.reply(result.reason or "you are not allowed to do that.")
        elif result.type == ResultType.PASS_THROUGH and isinstance(command, ParentCommand):
            names = "/".join(child.name for child in command.subcommands)
            await invocation.reply(
                f"choose one of the subcommands <{names}>. "
                f"Use `{prefix}commands` for their syntaxes."
            )

        logger.info(
            "command_processed",
            path=invocation.command_text,
            result=result.type.value,
            failure=result.failure.value if result.failure else None,
            server=message.server_id,
            channel=message.channel_id,
            user=message.author_id,
        )
        return result

    def _visible(self, command: BotCommand, message: InboundMessage) -> bool:
        return not (command.hidden_when_unpermitted and not allowed(message, command.permissions))

    def render_manual(self, message: InboundMessage, prefix: str) -> str:
        """Manual text of every command the message's author may see."""
        sections: List[str] = []

        stock = [c.manual.render(prefix) for c in self.stock_commands if self._visible(c, message)]
        if stock:
            sections.append("\n\n".join(stock))

        for module in self.modules:
            if module.hide_when_contradicts_permissions and not allowed(message, module.permissions):
                logger.debug("manual_module_hidden", module=module.name)
                continue
            header = f"Module {module.name}"
            if module.servers_are_universes:
                header += "\n(Module commands don't carry data between servers)"
            entries = [c.manual.render(prefix) for c in module.commands if self._visible(c, message)]
            sections.append(header + "\n" + indent("\n\n".join(entries)))

        return "\n\n\n".join(sections)
