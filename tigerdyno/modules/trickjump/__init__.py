"""trickjump: tiers and jumproles, scoped to each server's home channel.

Settings (``module_settings.trickjump`` in settings.yaml)::

    module_settings:
      trickjump:
        permissions:
          servers: {type: whitelist, list: [542766712785862666]}
        hide_when_contradicts_permissions: true
"""

from ...module_loader import BotModule
from ...permissions import permissions_from_config
from .jumprole_cmd import JumproleCommand
from .tables import TABLES
from .tier_cmd import TierCommand


def create_module(settings: dict) -> BotModule:
    return BotModule(
        name="trickjump",
        commands=(JumproleCommand(), TierCommand()),
        tables=dict(TABLES),
        servers_are_universes=True,
        permissions=permissions_from_config(settings.get("permissions")),
        hide_when_contradicts_permissions=bool(settings.get("hide_when_contradicts_permissions", True)),
    )
