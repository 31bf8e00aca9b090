"""Custom exception hierarchy for tigerdyno.

Provides precise error classification across the command framework,
the database layer, module loading and external integrations, so
callers can tell user mistakes apart from system faults.

Key classes:
    TigerDynoError: Base class carrying category, module and context.
    ArgumentValidationError: A command's arguments could not be bound
        or failed a constraint. Caught by the command framework and
        turned into a reply; never escapes to the transport.
    QueryFailedError: A database statement failed.
"""

from enum import Enum
from typing import Any, Optional, Sequence


class ErrorCategory(str, Enum):
    """Classification of errors for triage."""
    TRANSIENT = "transient"          # Might succeed later (connection hiccup, paste service down)
    PERMANENT = "permanent"          # Bad input, will fail again
    INFRASTRUCTURE = "infrastructure"  # Missing token, unwritable paths, env issues


class TigerDynoError(Exception):
    """Base exception for all tigerdyno errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification.
        module: Originating module name (e.g. "database").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_system_fault(self) -> bool:
        """Whether the error points at the bot rather than the user."""
        return self.category != ErrorCategory.PERMANENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Command framework exceptions
# ---------------------------------------------------------------------------

class ValidationErrorKind(str, Enum):
    """Why argument validation failed."""
    MISSING = "missing"                      # Required argument not given
    CONSTRAINT_FAILED = "constraint_failed"  # Given, but rejected by its constraint
    UNEXPECTED = "unexpected"                # Input that binds to no argument


class ArgumentValidationError(TigerDynoError):
    """Raw command text could not be turned into validated arguments.

    Attributes:
        argument_id: Id of the offending argument, or None for input
            that binds to no argument at all.
        argument_name: Display name of the offending argument.
        kind: ValidationErrorKind.
        reason: Short explanation suitable for a reply.
    """

    def __init__(
        self,
        message: str = "",
        *,
        kind: ValidationErrorKind,
        argument_id: Optional[str] = None,
        argument_name: Optional[str] = None,
        reason: str = "",
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.kind = kind
        self.argument_id = argument_id
        self.argument_name = argument_name
        self.reason = reason
        super().__init__(
            message or reason,
            category=ErrorCategory.PERMANENT,
            module=module or "commands.arguments",
            **context,
        )

    def user_message(self) -> str:
        """Reply text distinguishing missing from invalid input."""
        if self.kind == ValidationErrorKind.MISSING:
            return f"missing required argument <{self.argument_name}>."
        if self.kind == ValidationErrorKind.CONSTRAINT_FAILED:
            return f"invalid value for <{self.argument_name}>: {self.reason}"
        return f"could not read the arguments: {self.reason}"


class ManualError(TigerDynoError):
    """A command manual was declared inconsistently.

    Raised at registration time, never while processing messages.
    """

    def __init__(
        self,
        message: str = "",
        *,
        manual_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.manual_name = manual_name
        super().__init__(
            message,
            category=ErrorCategory.INFRASTRUCTURE,
            module=module or "commands.manual",
            **context,
        )


class ModuleLoadError(TigerDynoError):
    """A feature module could not be imported or is malformed."""

    def __init__(
        self,
        message: str = "",
        *,
        module_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.module_name = module_name
        super().__init__(
            message,
            category=ErrorCategory.INFRASTRUCTURE,
            module=module or "module_loader",
            **context,
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(TigerDynoError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


# ---------------------------------------------------------------------------
# Database exceptions
# ---------------------------------------------------------------------------

class DatabaseError(TigerDynoError):
    """Error during database operations.

    Attributes:
        operation: The DB operation that failed (e.g. "insert", "query").
        table: The table involved (if known).
    """

    def __init__(
        self,
        message: str = "",
        *,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.operation = operation
        self.table = table
        super().__init__(
            message, category=category, module=module or "database", **context
        )


class QueryFailedError(DatabaseError):
    """A single SQL statement failed, or its connection could not be opened.

    Attributes:
        query: The SQL text; empty when the connection failed.
        params: The positional parameters bound to it.
    """

    def __init__(
        self,
        message: str = "",
        *,
        query: str = "",
        params: Sequence[Any] = (),
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.query = query
        self.params = tuple(params)
        super().__init__(
            message, operation="query", category=category, module=module, **context
        )


# ---------------------------------------------------------------------------
# Integration exceptions
# ---------------------------------------------------------------------------

class PasteError(TigerDynoError):
    """The paste service rejected or failed an upload."""

    def __init__(
        self,
        message: str = "",
        *,
        status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.status = status
        super().__init__(
            message, category=category, module=module or "integrations.paste_ee", **context
        )
