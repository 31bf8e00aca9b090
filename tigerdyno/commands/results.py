"""Outcome of processing one message at one command node."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple


class ResultType(str, Enum):
    SUCCEEDED = "succeeded"
    DID_NOT_SUCCEED = "did_not_succeed"
    UNAUTHORIZED = "unauthorized"
    # Gating passed; the actual work belongs to a child node.
    PASS_THROUGH = "pass_through"


class FailureKind(str, Enum):
    """Why a command that was the right one still did not succeed."""
    GENERIC = "generic"
    INVALID_ARGUMENTS = "invalid_arguments"
    NOT_CONFIGURED = "not_configured"
    INCONSISTENT_CONFIGURATION = "inconsistent_configuration"
    QUERY_FAILED = "query_failed"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    EXTERNAL_SERVICE = "external_service"


_SYSTEM_FAULTS = frozenset({FailureKind.QUERY_FAILED, FailureKind.INCONSISTENT_CONFIGURATION})


@dataclass(frozen=True)
class CommandResult:
    """Tagged result. Build with the classmethods, not the constructor.

    ``path`` names the node that produced the result, root first. It is
    stamped by the dispatcher that ran that node, so nodes never set it.
    """

    type: ResultType
    reason: str = ""
    failure: Optional[FailureKind] = None
    path: Tuple[str, ...] = ()

    @classmethod
    def succeeded(cls) -> "CommandResult":
        return cls(ResultType.SUCCEEDED)

    @classmethod
    def did_not_succeed(
        cls, failure: FailureKind = FailureKind.GENERIC, reason: str = ""
    ) -> "CommandResult":
        return cls(ResultType.DID_NOT_SUCCEED, reason=reason, failure=failure)

    @classmethod
    def unauthorized(cls, reason: str) -> "CommandResult":
        return cls(ResultType.UNAUTHORIZED, reason=reason)

    @classmethod
    def pass_through(cls) -> "CommandResult":
        return cls(ResultType.PASS_THROUGH)

    @property
    def is_terminal(self) -> bool:
        return self.type != ResultType.PASS_THROUGH

    def produced_at(self, path: Sequence[str]) -> "CommandResult":
        """Return this result with ``path`` set, unless a deeper node set it."""
        if self.path:
            return self
        return replace(self, path=tuple(path))

    @property
    def is_system_fault(self) -> bool:
        """True when the failure points at the bot, not the user."""
        return self.failure in _SYSTEM_FAULTS
