"""Ordered first-match dispatch over a node's children."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence, Tuple

import structlog

from ..exceptions import ManualError

if TYPE_CHECKING:
    from .base import BotCommand, CommandContext, Invocation
    from .results import CommandResult

logger = structlog.get_logger("tigerdyno.commands")

Gate = Callable[["BotCommand", "Invocation", "CommandContext"], Awaitable["CommandResult"]]


class Dispatcher:
    """Tries children in registration order; the first match wins.

    Children are tried strictly one after another. A child that does
    not match is skipped; the first child that matches decides the
    outcome, whatever it is.

    Args:
        children: Nodes to try, in order. Names must be unique
            (case-insensitive).

    Raises:
        ManualError: On duplicate child names.
    """

    def __init__(self, children: Sequence["BotCommand"]):
        seen = set()
        for child in children:
            key = child.name.lower()
            if key in seen:
                raise ManualError(f"two children named {child.name!r}", manual_name=child.name)
            seen.add(key)
        self._children = tuple(children)

    @property
    def children(self) -> Tuple["BotCommand", ...]:
        return self._children

    def find(self, text: str) -> Optional[Tuple["BotCommand", str]]:
        """Return the first child matching ``text`` and its remainder."""
        for child in self._children:
            remainder = child.match(text)
            if remainder is not None:
                return child, remainder
        return None

    async def try_children(
        self,
        invocation: "Invocation",
        ctx: "CommandContext",
        gate: Optional[Gate] = None,
    ) -> Optional["CommandResult"]:
        """Dispatch the invocation's remainder to the matching child.

        Args:
            invocation: The parent's invocation.
            ctx: Shared command context.
            gate: Run on the matched child before it is attempted. A
                terminal result ends the dispatch.

        Returns:
            The matched child's result (PassThrough included), or None
            when no child matched. Terminal results carry the path of
            the node that produced them.
        """
        found = self.find(invocation.remainder)
        if found is None:
            return None

        child, remainder = found
        child_invocation = invocation.descend(child.name, remainder)
        logger.debug("command_matched", path=" ".join(child_invocation.path))

        if gate is not None:
            gated = await gate(child, child_invocation, ctx)
            if gated.is_terminal:
                logger.debug(
                    "dispatch_gated",
                    path=" ".join(child_invocation.path),
                    result=gated.type.value,
                )
                return gated.produced_at(child_invocation.path)

        result = await child.attempt(child_invocation, ctx)
        if result.is_terminal:
            return result.produced_at(child_invocation.path)
        return result
