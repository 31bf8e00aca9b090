"""Command tree framework for tigerdyno.

Provides the command node classes, the dispatcher, argument schemas
and the result type every node returns.
"""

from .base import (
    BotCommand,
    CommandContext,
    InboundMessage,
    Invocation,
    ParentCommand,
    Responder,
    Subcommand,
)
from .dispatcher import Dispatcher
from .results import CommandResult, FailureKind, ResultType

__all__ = [
    "BotCommand",
    "CommandContext",
    "CommandResult",
    "Dispatcher",
    "FailureKind",
    "InboundMessage",
    "Invocation",
    "ParentCommand",
    "Responder",
    "ResultType",
    "Subcommand",
]
