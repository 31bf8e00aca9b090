"""Base classes for the command tree.

Every command is a node. A node matches the first word of the text it
is handed, checks its static permissions and then processes the rest.
Leaves (``Subcommand``) validate their arguments and act; routers
(``ParentCommand``) hand the rest of the text to their children through
a ``Dispatcher``, optionally gating the matched child first.

Key classes:
    InboundMessage: Transport-neutral view of one chat message.
    Responder: Callbacks for answering that message.
    Invocation: One message travelling down the tree.
    CommandContext: Dependency container shared by all commands.
    BotCommand: ABC of all nodes.
    Subcommand: Leaf node.
    ParentCommand: Router node.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional, Protocol, Sequence, Tuple

import structlog

from ..database import query_failure
from ..exceptions import ArgumentValidationError, ManualError, QueryFailedError
from ..permissions import Permissions, allowed
from .arguments import ValidatedArguments, tokenize, uses_markers, validate_arguments
from .dispatcher import Dispatcher
from .manual import CommandManual
from .results import CommandResult, FailureKind

if TYPE_CHECKING:
    from ..config import Config
    from ..database import Database
    from ..designate import DesignateRegistry
    from ..integrations.paste_ee import PasteClient
    from .tree import CommandTree

logger = structlog.get_logger("tigerdyno.commands")

MARKER_HINT = (
    "(give the markers in this order; put a value in double quotes "
    "to use a marker word inside it)"
)


@dataclass(frozen=True)
class InboundMessage:
    raw_text: str
    author_id: str
    channel_id: str
    # None outside a server (direct messages)
    server_id: Optional[str]
    mentions_bot: bool = False


class Responder(Protocol):
    async def send(self, text: str) -> None:
        ...

    async def acknowledge(self) -> None:
        ...


@dataclass(frozen=True)
class Invocation:
    """A message on its way down the command tree.

    Attributes:
        message: The inbound message.
        responder: Reply callbacks for that message.
        prefix: Command prefix in effect for the message's server.
        path: Names of the nodes matched so far, root first.
        remainder: Text after the last matched name.
    """

    message: InboundMessage
    responder: Responder
    prefix: str
    path: Tuple[str, ...] = ()
    remainder: str = ""

    def descend(self, name: str, remainder: str) -> "Invocation":
        return replace(self, path=(*self.path, name), remainder=remainder)

    @property
    def command_text(self) -> str:
        """What the user typed to get here, e.g. "%tier create"."""
        return self.prefix + " ".join(self.path)

    async def reply(self, text: str) -> None:
        """Send text prefixed with the command path.

        Send failures are logged and not retried; the command outcome
        does not depend on whether the reply arrived.
        """
        body = f"{self.command_text}: {text}" if self.path else text
        try:
            await self.responder.send(body)
        except Exception as e:
            logger.error(
                "reply_failed",
                channel=self.message.channel_id,
                command=self.command_text,
                error=str(e),
            )

    async def acknowledge(self) -> None:
        try:
            await self.responder.acknowledge()
        except Exception as e:
            logger.error(
                "acknowledge_failed",
                channel=self.message.channel_id,
                command=self.command_text,
                error=str(e),
            )


@dataclass
class CommandContext:
    """Dependency container for commands.

    ``tree`` is deferred: the tree is built after the context because
    the stock commands it holds need the context. Accessing it before
    the tree is attached raises RuntimeError.
    """

    config: "Config"
    database: "Database"
    designates: "DesignateRegistry"
    paste: Optional["PasteClient"] = None
    _tree: Optional["CommandTree"] = field(default=None, repr=False)

    @property
    def tree(self) -> "CommandTree":
        if self._tree is None:
            raise RuntimeError("Command tree not attached to context")
        return self._tree

    def attach_tree(self, tree: "CommandTree") -> None:
        self._tree = tree

    @property
    def maintainer_tag(self) -> str:
        return self.config.maintainer_tag


async def report_system_fault(
    invocation: Invocation, ctx: CommandContext, failure: FailureKind, detail: str
) -> CommandResult:
    """Reply about a fault on the bot's side and return DidNotSucceed."""
    await invocation.reply(f"{detail} Contact {ctx.maintainer_tag} for help.")
    return CommandResult.did_not_succeed(failure, detail)


async def report_query_failure(
    invocation: Invocation, ctx: CommandContext, function_name: str, err: QueryFailedError
) -> CommandResult:
    """Log a failed statement, reply, and return DidNotSucceed(QUERY_FAILED)."""
    query_failure(function_name, err.query, err.params, err)
    return await report_system_fault(
        invocation,
        ctx,
        FailureKind.QUERY_FAILED,
        "an unknown internal error caused the database query to fail.",
    )


class BotCommand(ABC):
    """A node of the command tree.

    Subclasses set ``manual`` as a class attribute. ``permissions``
    restricts who may run the node; ``hidden_when_unpermitted`` also
    hides it from the published manual for those callers.
    """

    manual: CommandManual
    permissions: Optional[Permissions] = None
    hidden_when_unpermitted: bool = False

    @property
    def name(self) -> str:
        return self.manual.name

    def match(self, text: str) -> Optional[str]:
        """Return the text after this node's name, or None if it is not first."""
        parts = text.split(maxsplit=1)
        if not parts or parts[0].lower() != self.name.lower():
            return None
        return parts[1] if len(parts) > 1 else ""

    async def attempt(self, invocation: Invocation, ctx: CommandContext) -> CommandResult:
        if not allowed(invocation.message, self.permissions):
            return CommandResult.unauthorized(
                f"you are not allowed to use {invocation.command_text} here."
            )
        return await self.process(invocation, ctx)

    @abstractmethod
    async def process(self, invocation: Invocation, ctx: CommandContext) -> CommandResult:
        ...


class Subcommand(BotCommand):
    """Leaf node: validate arguments, then activate."""

    async def process(self, invocation: Invocation, ctx: CommandContext) -> CommandResult:
        try:
            values = validate_arguments(tokenize(invocation.remainder), self.manual.arguments)
        except ArgumentValidationError as e:
            logger.info(
                "arguments_rejected",
                command=invocation.command_text,
                kind=e.kind.value,
                argument=e.argument_id,
            )
            usage = self.manual.syntaxes(invocation.prefix, invocation.path[:-1], compact=True)[0]
            text = f"{e.user_message()} Usage: {usage}"
            if uses_markers(self.manual.arguments):
                text += f" {MARKER_HINT}"
            await invocation.reply(text)
            return CommandResult.did_not_succeed(FailureKind.INVALID_ARGUMENTS, e.user_message())
        return await self.activate(values, invocation, ctx)

    @abstractmethod
    async def activate(
        self, values: ValidatedArguments, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        ...


class ParentCommand(BotCommand):
    """Router node over a fixed set of subcommands.

    Args:
        subcommands: Child nodes, tried in order. Their names must be
            exactly the subcommand names declared in ``manual``.

    Raises:
        ManualError: If the children disagree with the manual.
    """

    def __init__(self, subcommands: Sequence[BotCommand]):
        declared = [name.lower() for name in self.manual.subcommand_names()]
        given = [child.name.lower() for child in subcommands]
        if sorted(declared) != sorted(given):
            raise ManualError(
                f"subcommands {given} do not match manual {declared}",
                manual_name=self.manual.name,
            )
        self.dispatcher = Dispatcher(subcommands)

    @property
    def subcommands(self) -> Tuple[BotCommand, ...]:
        return self.dispatcher.children

    async def pre_dispatch(
        self, subcommand: BotCommand, invocation: Invocation, ctx: CommandContext
    ) -> CommandResult:
        """Gate run on the matched child before it is attempted.

        Anything other than PassThrough ends the dispatch with that
        result.
        """
        return CommandResult.pass_through()

    async def process(self, invocation: Invocation, ctx: CommandContext) -> CommandResult:
        result = await self.dispatcher.try_children(invocation, ctx, gate=self.pre_dispatch)
        if result is None:
            return CommandResult.pass_through()
        return result
