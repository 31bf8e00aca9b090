"""Command manuals: the declarative half of every command.

A manual names a command, describes it and declares either an argument
schema (a leaf) or a list of subcommand manuals (a parent). Manuals are
immutable and checked once at construction, so a bad declaration fails
at start-up instead of on the first message.

Rendering produces the plain-text help that the ``commands`` stock
command publishes. Each leaf lists one syntax per combination of its
optional arguments, from none supplied to all supplied, unless the
manual asks for a single compact line.
"""

import itertools
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..exceptions import ManualError
from .arguments import CommandArgument

INDENT = "    "


def indent(text: str) -> str:
    return "\n".join(f"{INDENT}{line}" for line in text.split("\n"))


@dataclass(frozen=True)
class CommandManual:
    """Immutable description of a command or subcommand.

    Attributes:
        name: Word that invokes the command. No whitespace.
        description: One-paragraph description for the manual.
        arguments: Argument schema, in positional order. Leaves only.
        subcommands: Child manuals. Parents only.
        compact_syntaxes: Render one syntax line with optional
            arguments marked, instead of every combination.
    """

    name: str
    description: str
    arguments: Tuple[CommandArgument, ...] = ()
    subcommands: Tuple["CommandManual", ...] = ()
    compact_syntaxes: bool = False

    def __post_init__(self):
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "subcommands", tuple(self.subcommands))

        if not self.name or len(self.name.split()) != 1 or self.name != self.name.strip():
            raise ManualError(f"invalid command name {self.name!r}", manual_name=self.name)
        if self.arguments and self.subcommands:
            raise ManualError(
                "a manual declares either arguments or subcommands, not both",
                manual_name=self.name,
            )

        ids = [argument.id for argument in self.arguments]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ManualError(
                f"duplicate argument ids: {', '.join(duplicates)}", manual_name=self.name
            )

        marked = [argument.marker is not None for argument in self.arguments]
        if any(marked) and not all(marked):
            raise ManualError(
                "either every argument declares a marker or none does", manual_name=self.name
            )

        names = [sub.name.lower() for sub in self.subcommands]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ManualError(
                f"duplicate subcommand names: {', '.join(duplicates)}", manual_name=self.name
            )

    @property
    def is_parent(self) -> bool:
        return bool(self.subcommands)

    def subcommand_names(self) -> List[str]:
        return [sub.name for sub in self.subcommands]

    def _render_argument(self, argument: CommandArgument, compact: bool) -> str:
        text = f"<{argument.name}>"
        if argument.marker is not None:
            text = f"{argument.marker} {text}"
        if compact and argument.optional:
            text = f"(optional: {text})"
        return text

    def syntaxes(
        self, prefix: str, parents: Sequence[str] = (), compact: Optional[bool] = None
    ) -> List[str]:
        """Every accepted syntax of a leaf, as the user would type it.

        With n optional arguments there are 2**n lines, ordered like a
        binary count: none supplied first, all supplied last. Compact
        mode (the manual's own setting unless ``compact`` overrides it)
        gives a single line instead.
        """
        head = prefix + " ".join([*parents, self.name])
        if compact is None:
            compact = self.compact_syntaxes
        if compact:
            parts = [self._render_argument(a, compact=True) for a in self.arguments]
            return [" ".join([head, *parts])]

        optional = [a for a in self.arguments if a.optional]
        lines = []
        for state in itertools.product((False, True), repeat=len(optional)):
            supplied = {a.id for a, on in zip(optional, state) if on}
            parts = [
                self._render_argument(a, compact=False)
                for a in self.arguments
                if not a.optional or a.id in supplied
            ]
            lines.append(" ".join([head, *parts]))
        return lines

    def _render_leaf(self, prefix: str, parents: Sequence[str]) -> str:
        numbered = "\n".join(
            f"{index}. {syntax}"
            for index, syntax in enumerate(self.syntaxes(prefix, parents), start=1)
        )
        text = f"{self.name}:\n{indent(numbered)}\n{indent('Description: ' + self.description)}"
        if self.arguments:
            described = "\n".join(f"<{a.name}>: {a.describe()}" for a in self.arguments)
            text += "\n" + indent("Arguments:\n" + indent(described))
        return text

    def render(self, prefix: str, parents: Sequence[str] = ()) -> str:
        """Plain-text manual entry for this command and its children."""
        if not self.is_parent:
            return self._render_leaf(prefix, parents)

        text = f"{self.name} <{'/'.join(self.subcommand_names())}>\n"
        text += indent(f"Description: {self.description}") + "\n\n"
        children = [sub.render(prefix, [*parents, self.name]) for sub in self.subcommands]
        text += indent("\n".join(children))
        return text
