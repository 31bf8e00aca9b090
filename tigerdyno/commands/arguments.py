"""Argument schemas and validation for command text.

A command declares its arguments as an ordered tuple of
``CommandArgument``. ``validate_arguments`` binds raw tokens to them,
either positionally or, when the schema declares markers, by scanning
for literal marker phrases (``NAME ... TIER ...``) given in declaration
order. Optional markers may be left out. A marker word that cannot open
a value at its position is kept as value text; quoting a value keeps
any marker word inside it. Each bound value goes through the
argument's ``Constraint``.

Validation is pure: no I/O and no hidden state. Failures raise
``ArgumentValidationError`` with a kind of MISSING, CONSTRAINT_FAILED
or UNEXPECTED.

Key classes:
    CommandArgument: One schema entry.
    Constraint: Base of the closed set of constraint variants
        (FreeText, BoundedInteger, Boolean, Identity, Choice).
    ValidatedArguments: Immutable id -> value mapping.

Constants:
    ABSENT: Value of an optional argument that was not given.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import ArgumentValidationError, ValidationErrorKind


class _Absent:
    """Singleton marking an optional argument that was not given."""

    _instance: Optional["_Absent"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


class ConstraintViolation(ValueError):
    """Raised by Constraint.check with a reply-ready reason."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# ---------------------------------------------------------------------------
# Constraint variants
# ---------------------------------------------------------------------------

class Constraint(ABC):
    """Turns raw argument text into a typed value or rejects it."""

    @abstractmethod
    def check(self, raw: str) -> Any:
        """Return the typed value or raise ConstraintViolation."""

    @abstractmethod
    def describe(self) -> str:
        """Short human description used in manual text."""


@dataclass(frozen=True)
class FreeText(Constraint):
    min_length: int = 1
    max_length: Optional[int] = None

    def check(self, raw: str) -> str:
        if len(raw) < self.min_length:
            if self.min_length == 1:
                raise ConstraintViolation("must not be empty")
            raise ConstraintViolation(f"must be at least {self.min_length} characters long")
        if self.max_length is not None and len(raw) > self.max_length:
            raise ConstraintViolation(
                f"must be at most {self.max_length} characters long (got {len(raw)})"
            )
        return raw

    def describe(self) -> str:
        if self.max_length is None:
            return "text"
        return f"text, up to {self.max_length} characters"


_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class BoundedInteger(Constraint):
    """Integer with inclusive bounds. None means unbounded on that side."""

    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def check(self, raw: str) -> int:
        if not _INTEGER_PATTERN.match(raw):
            raise ConstraintViolation(f'"{raw}" is not a whole number')
        value = int(raw)
        if self.minimum is not None and value < self.minimum:
            raise ConstraintViolation(f"must be at least {self.minimum} (got {value})")
        if self.maximum is not None and value > self.maximum:
            raise ConstraintViolation(f"must be at most {self.maximum} (got {value})")
        return value

    def describe(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"whole number from {self.minimum} to {self.maximum}"
        if self.minimum is not None:
            return f"whole number, at least {self.minimum}"
        if self.maximum is not None:
            return f"whole number, at most {self.maximum}"
        return "whole number"


_TRUE_WORDS = frozenset({"true", "yes", "y", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "n", "off", "0"})


@dataclass(frozen=True)
class Boolean(Constraint):
    def check(self, raw: str) -> bool:
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ConstraintViolation(f'"{raw}" is not yes/no or true/false')

    def describe(self) -> str:
        return "true or false"


_MENTION_PATTERNS = {
    "user": re.compile(r"^<@!?(\d{1,20})>$"),
    "channel": re.compile(r"^<#(\d{1,20})>$"),
    "role": re.compile(r"^<@&(\d{1,20})>$"),
}
_BARE_ID_PATTERN = re.compile(r"^\d{1,20}$")


@dataclass(frozen=True)
class Identity(Constraint):
    """A platform id, given bare or as a mention.

    Args:
        kind: "user", "channel", "role" or "any". Restricts which
            mention form is accepted; bare ids are always accepted.
    """

    kind: str = "any"

    def check(self, raw: str) -> str:
        if _BARE_ID_PATTERN.match(raw):
            return raw
        kinds = _MENTION_PATTERNS if self.kind == "any" else {self.kind: _MENTION_PATTERNS[self.kind]}
        for pattern in kinds.values():
            match = pattern.match(raw)
            if match:
                return match.group(1)
        noun = "an id" if self.kind == "any" else f"a {self.kind} id or mention"
        raise ConstraintViolation(f'"{raw}" is not {noun}')

    def describe(self) -> str:
        return "id or mention" if self.kind == "any" else f"{self.kind} id or mention"


@dataclass(frozen=True)
class Choice(Constraint):
    """One of a fixed set of options, matched case-insensitively."""

    options: Tuple[str, ...]

    def check(self, raw: str) -> str:
        wanted = " ".join(raw.split()).lower()
        for option in self.options:
            if option.lower() == wanted:
                return option
        raise ConstraintViolation(f'"{raw}" is not one of: {", ".join(self.options)}')

    def describe(self) -> str:
        return "one of " + ", ".join(self.options)


# Non-negative 4-byte integer, the range stored for ranks and ordinals
UINT4 = BoundedInteger(0, 4294967295)


# ---------------------------------------------------------------------------
# Schema entries and validated values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommandArgument:
    """One entry of a command's argument schema.

    Attributes:
        name: Display name, e.g. "jump type".
        id: Key in ValidatedArguments; unique within one manual.
        optional: Whether the argument may be left out.
        constraint: Typed check; None accepts any non-empty text.
        marker: Literal phrase preceding the value in keyword syntax,
            e.g. "JUMP TYPE". Matched case-sensitively.
    """

    name: str
    id: str
    optional: bool = False
    constraint: Optional[Constraint] = None
    marker: Optional[str] = None

    def describe(self) -> str:
        if self.constraint is None:
            return "text"
        return self.constraint.describe()

    def convert(self, raw: str) -> Any:
        if self.constraint is None:
            if raw == "":
                raise ConstraintViolation("must not be empty")
            return raw
        return self.constraint.check(raw)


class ValidatedArguments(Mapping):
    """Read-only mapping from argument id to its typed value."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any]):
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def is_present(self, key: str) -> bool:
        return self._values[key] is not ABSENT

    def __repr__(self) -> str:
        return f"ValidatedArguments({dict(self._values)!r})"


# ---------------------------------------------------------------------------
# Tokenizing and binding
# ---------------------------------------------------------------------------

_TOKEN_PATTERN = re.compile(r'"([^"]*)"|(\S+)')


def tokenize(text: str) -> List[str]:
    """Split on whitespace; double quotes group words into one token.

    Single quotes are ordinary characters so apostrophes in chat text
    need no escaping.

    Raises:
        ArgumentValidationError: On an unbalanced double quote.
    """
    if text.count('"') % 2:
        raise ArgumentValidationError(
            kind=ValidationErrorKind.UNEXPECTED,
            reason="a quotation mark is not closed",
        )
    return [quoted if quoted or bare == "" else bare for quoted, bare in _TOKEN_PATTERN.findall(text)]


def _bind_positional(
    tokens: Sequence[str], arguments: Tuple[CommandArgument, ...]
) -> Dict[str, str]:
    if not arguments:
        if tokens:
            raise ArgumentValidationError(
                kind=ValidationErrorKind.UNEXPECTED,
                reason=f'this command takes no arguments (got "{" ".join(tokens)}")',
            )
        return {}

    bound = {}
    for index, argument in enumerate(arguments):
        if index < len(tokens):
            bound[argument.id] = tokens[index]
    # Surplus tokens are a free-text tail on the last argument
    if len(tokens) > len(arguments):
        last = arguments[-1]
        bound[last.id] = " ".join(tokens[len(arguments) - 1:])
    return bound


def _marker_at(
    tokens: Sequence[str], index: int, markers: List[Tuple[List[str], CommandArgument]]
) -> Optional[Tuple[List[str], CommandArgument]]:
    for words, argument in markers:
        if list(tokens[index:index + len(words)]) == words:
            return words, argument
    return None


def _bind_keywords(
    tokens: Sequence[str], arguments: Tuple[CommandArgument, ...]
) -> Dict[str, str]:
    # Markers open values in declaration order. Inside a value, only the
    # markers of later arguments are recognised; any earlier marker word
    # is value text, so "INFO use the LINK below" keeps the whole sentence.
    position = {argument.id: index for index, argument in enumerate(arguments)}
    # Longest marker first so "JUMP TYPE" wins over a hypothetical "JUMP"
    markers = sorted(
        ((argument.marker.split(), argument) for argument in arguments),
        key=lambda item: -len(item[0]),
    )
    segments: Dict[str, List[str]] = {}
    current: Optional[str] = None
    stray: List[str] = []

    index = 0
    while index < len(tokens):
        if current is not None:
            markers = [m for m in markers if position[m[1].id] > position[current]]
        hit = _marker_at(tokens, index, markers)
        if hit is not None:
            words, argument = hit
            segments[argument.id] = []
            current = argument.id
            index += len(words)
            continue
        if current is None:
            stray.append(tokens[index])
        else:
            segments[current].append(tokens[index])
        index += 1

    if stray:
        raise ArgumentValidationError(
            kind=ValidationErrorKind.UNEXPECTED,
            reason=f'expected {arguments[0].marker} before "{" ".join(stray)}"',
        )

    bound = {}
    by_id = {argument.id: argument for argument in arguments}
    for argument_id, words in segments.items():
        if not words:
            argument = by_id[argument_id]
            raise ArgumentValidationError(
                kind=ValidationErrorKind.CONSTRAINT_FAILED,
                argument_id=argument.id,
                argument_name=argument.name,
                reason=f"no value was given after {argument.marker}",
            )
        bound[argument_id] = " ".join(words)
    return bound


def uses_markers(arguments: Sequence[CommandArgument]) -> bool:
    return any(argument.marker for argument in arguments)


def validate_arguments(
    tokens: Sequence[str], arguments: Sequence[CommandArgument]
) -> ValidatedArguments:
    """Bind and check raw tokens against an argument schema.

    Args:
        tokens: Output of tokenize() for the text after the command.
        arguments: The schema, in positional order.

    Returns:
        ValidatedArguments whose keys are exactly the schema ids.

    Raises:
        ArgumentValidationError: MISSING for an absent required
            argument, CONSTRAINT_FAILED for a rejected value,
            UNEXPECTED for input that binds to no argument.
    """
    arguments = tuple(arguments)
    if uses_markers(arguments):
        raw = _bind_keywords(tokens, arguments)
    else:
        raw = _bind_positional(tokens, arguments)

    values: Dict[str, Any] = {}
    for argument in arguments:
        text = raw.get(argument.id)
        if text is None:
            if argument.optional:
                values[argument.id] = ABSENT
                continue
            raise ArgumentValidationError(
                kind=ValidationErrorKind.MISSING,
                argument_id=argument.id,
                argument_name=argument.name,
                reason=f"<{argument.name}> was not given",
            )
        try:
            values[argument.id] = argument.convert(text)
        except ConstraintViolation as e:
            raise ArgumentValidationError(
                kind=ValidationErrorKind.CONSTRAINT_FAILED,
                argument_id=argument.id,
                argument_name=argument.name,
                reason=e.reason,
            ) from e
    return ValidatedArguments(values)
