"""Static, identity-based permissions for tigerdyno.

A command or module may declare a ``Permissions`` object made of up to
three ``InclusionSpecifier`` dimensions (servers, channels, users). All
present dimensions must pass; absent ones impose no restriction; an
absent Permissions object means unrestricted.

``allowed_under`` deliberately denies when no specifier is passed at
all. Only ``allowed`` turns a missing dimension into "no restriction".
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, FrozenSet, Iterable, Optional, Union

import structlog

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .commands.base import InboundMessage

logger = structlog.get_logger("tigerdyno.security")

Snowflake = Union[str, int]

_SNOWFLAKE_PATTERN = re.compile(r"^\d{1,20}$")


def is_valid_snowflake(value: Any) -> bool:
    """Check whether a value looks like a platform id."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and bool(_SNOWFLAKE_PATTERN.match(value))


class InclusionType(str, Enum):
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"


@dataclass(frozen=True)
class InclusionSpecifier:
    """Whitelist or blacklist over a set of identities.

    Members are stored as strings so that ``123`` and ``"123"`` compare
    equal.
    """

    mode: InclusionType
    members: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "members", frozenset(str(m) for m in self.members))

    @classmethod
    def whitelist(cls, members: Iterable[Snowflake]) -> "InclusionSpecifier":
        return cls(InclusionType.WHITELIST, frozenset(str(m) for m in members))

    @classmethod
    def blacklist(cls, members: Iterable[Snowflake]) -> "InclusionSpecifier":
        return cls(InclusionType.BLACKLIST, frozenset(str(m) for m in members))


@dataclass(frozen=True)
class Permissions:
    servers: Optional[InclusionSpecifier] = None
    channels: Optional[InclusionSpecifier] = None
    users: Optional[InclusionSpecifier] = None


def allowed_under(identity: Optional[Snowflake], specifier: Optional[InclusionSpecifier]) -> bool:
    """Membership test for one identity against one specifier.

    Returns False when the identity is empty or when no specifier is
    given; callers that mean "no restriction" must not call this.
    """
    if identity is None or identity == "":
        return False
    if specifier is None:
        return False

    member = str(identity) in specifier.members
    if specifier.mode == InclusionType.WHITELIST:
        return member
    return not member


def allowed(message: "InboundMessage", permissions: Optional[Permissions]) -> bool:
    """Check a message's server, channel and author against Permissions.

    Dimensions are checked in that order and the first failure
    short-circuits.
    """
    if permissions is None:
        return True

    dimensions = (
        ("server", message.server_id, permissions.servers),
        ("channel", message.channel_id, permissions.channels),
        ("user", message.author_id, permissions.users),
    )
    for dimension, identity, specifier in dimensions:
        if specifier is None:
            continue
        if not allowed_under(identity, specifier):
            logger.warning(
                "permission_denied",
                dimension=dimension,
                identity=identity,
                mode=specifier.mode.value,
            )
            return False
    return True


def _specifier_from_config(dimension: str, raw: Any) -> Optional[InclusionSpecifier]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"permissions.{dimension} must be a mapping", setting_name=f"permissions.{dimension}"
        )
    mode_name = str(raw.get("type", raw.get("mode", ""))).lower()
    try:
        mode = InclusionType(mode_name)
    except ValueError:
        raise ConfigurationError(
            f"permissions.{dimension}.type must be whitelist or blacklist, got {mode_name!r}",
            setting_name=f"permissions.{dimension}.type",
        ) from None
    members = raw.get("list", raw.get("members", [])) or []
    if not isinstance(members, list):
        raise ConfigurationError(
            f"permissions.{dimension}.list must be a list",
            setting_name=f"permissions.{dimension}.list",
        )
    return InclusionSpecifier(mode, frozenset(str(m) for m in members))


def permissions_from_config(raw: Any) -> Optional[Permissions]:
    """Build Permissions from a settings.yaml section.

    Example::

        permissions:
          servers: {type: whitelist, list: [542766712785862666]}
          users: {type: blacklist, list: []}

    Raises:
        ConfigurationError: If the section is malformed.
    """
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigurationError("permissions must be a mapping", setting_name="permissions")
    return Permissions(
        servers=_specifier_from_config("servers", raw.get("servers")),
        channels=_specifier_from_config("channels", raw.get("channels")),
        users=_specifier_from_config("users", raw.get("users")),
    )
