"""Feature module discovery and registration.

A feature module is a package ``tigerdyno.modules.<name>`` exposing
``create_module(settings) -> BotModule``. Modules are loaded once at
start-up in configured order. A module whose tables or command names
collide with the system or with an earlier module is refused; the
earlier registration wins.
"""

import importlib
import re
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from .commands.base import BotCommand
from .config import Config
from .database import STOCK_TABLES
from .exceptions import ConfigurationError, ModuleLoadError
from .permissions import Permissions

logger = structlog.get_logger("tigerdyno.modules")

MODULE_PACKAGE = "tigerdyno.modules"

_MODULE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True)
class BotModule:
    """A named bundle of top-level commands and owned tables.

    Attributes:
        name: Module name, shown in the manual.
        commands: Top-level commands the module contributes.
        tables: Table name -> CREATE TABLE statement.
        servers_are_universes: Data is kept per server.
        permissions: Applies to every command of the module.
        hide_when_contradicts_permissions: Hide the module from the
            manual for callers its permissions deny.
    """

    name: str
    commands: Tuple[BotCommand, ...]
    tables: Mapping[str, str] = field(default_factory=dict)
    servers_are_universes: bool = False
    permissions: Optional[Permissions] = None
    hide_when_contradicts_permissions: bool = False

    @property
    def command_names(self) -> List[str]:
        return [command.name.lower() for command in self.commands]

    @property
    def schemas(self) -> List[str]:
        return list(self.tables.values())


def _import_module_factory(name: str) -> Callable[[dict], BotModule]:
    if not _MODULE_NAME_PATTERN.match(name):
        raise ModuleLoadError(f"invalid module name {name!r}", module_name=name)
    try:
        package = importlib.import_module(f"{MODULE_PACKAGE}.{name}")
    except ImportError as e:
        raise ModuleLoadError(f"cannot import module: {e}", module_name=name) from e

    factory = getattr(package, "create_module", None)
    if not callable(factory):
        raise ModuleLoadError("module has no create_module()", module_name=name)
    return factory


def load_module(name: str, settings: dict) -> BotModule:
    """Import one feature module and build it.

    Raises:
        ModuleLoadError: If the module cannot be imported, its settings
            are malformed, or it does not produce a BotModule.
    """
    factory = _import_module_factory(name)
    try:
        module = factory(settings)
    except ConfigurationError as e:
        raise ModuleLoadError(f"invalid settings: {e.message}", module_name=name) from e
    if not isinstance(module, BotModule):
        raise ModuleLoadError(
            f"create_module() returned {type(module).__name__}, not BotModule",
            module_name=name,
        )
    return module


def load_modules(
    names: Sequence[str],
    config: Config,
    reserved_commands: Collection[str] = (),
) -> Tuple[BotModule, ...]:
    """Load configured modules, skipping broken and conflicting ones.

    Args:
        names: Module names in priority order.
        config: Source of each module's ``module_settings`` section.
        reserved_commands: Command names already taken (stock commands).

    Returns:
        The accepted modules, in order.
    """
    table_owners: Dict[str, str] = {table: "system" for table in STOCK_TABLES}
    command_owners: Dict[str, str] = {name.lower(): "stock" for name in reserved_commands}
    loaded: List[BotModule] = []

    for name in names:
        try:
            module = load_module(name, config.module_settings(name))
        except ModuleLoadError as e:
            logger.error("module_load_failed", module=name, error=e.message)
            continue

        table_conflicts = {t: table_owners[t] for t in module.tables if t in table_owners}
        if table_conflicts:
            logger.error(
                "module_incompatibility",
                module=module.name,
                kind="table",
                conflicts=table_conflicts,
            )
            continue

        command_conflicts = {c: command_owners[c] for c in module.command_names if c in command_owners}
        if command_conflicts:
            logger.error(
                "module_incompatibility",
                module=module.name,
                kind="command",
                conflicts=command_conflicts,
            )
            continue

        for table in module.tables:
            table_owners[table] = module.name
        for command in module.command_names:
            command_owners[command] = module.name
        loaded.append(module)
        logger.info(
            "module_loaded",
            module=module.name,
            commands=module.command_names,
            tables=list(module.tables),
        )

    logger.info("module_loader_complete", modules_loaded=len(loaded))
    return tuple(loaded)
