"""Bot implementation for tigerdyno.

Wires configuration, the database, the designate registry, the paste
client, the loaded modules and the command tree together, and connects
the tree to the Discord transport.

Key classes:
    DynoBot: Owns every collaborator and the message pipeline.
"""

from typing import Optional

import discord
import structlog

from .commands.base import CommandContext, InboundMessage, Responder
from .commands.results import CommandResult
from .commands.stock import stock_commands
from .commands.tree import CommandTree
from .config import Config, get_config
from .database import Database
from .designate import DesignateRegistry
from .exceptions import ConfigurationError, PasteError
from .integrations.paste_ee import PasteClient
from .module_loader import load_modules
from .transport.discord_client import build_client

logger = structlog.get_logger("tigerdyno.bot")


class DynoBot:
    """Command bot lifecycle.

    Synchronous set-up (modules, command tree) happens in __init__ so a
    broken module declaration fails before connecting; database
    initialisation happens in start().
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.running = False

        self.database = Database(self.config.database_path)
        self.designates = DesignateRegistry(self.config.admins)
        self.paste = self._make_paste_client()
        self.ctx = CommandContext(
            config=self.config,
            database=self.database,
            designates=self.designates,
            paste=self.paste,
        )

        stock = stock_commands()
        self.modules = load_modules(
            self.config.modules, self.config, reserved_commands=[c.name for c in stock]
        )
        self.tree = CommandTree(stock, self.modules)
        self.ctx.attach_tree(self.tree)

        self.client: Optional[discord.Client] = None

    def _make_paste_client(self) -> Optional[PasteClient]:
        if not self.config.paste_api_token:
            return None
        try:
            return PasteClient(
                api_token=self.config.paste_api_token,
                api_url=self.config.paste_api_url,
                timeout=self.config.paste_timeout,
            )
        except PasteError as e:
            logger.error("paste_client_unavailable", error=e.message)
            return None

    async def start(self):
        """Create tables for the system and every loaded module."""
        schemas = [ddl for module in self.modules for ddl in module.schemas]
        await self.database.initialize(schemas)
        self.running = True
        logger.info(
            "bot_started",
            modules=[module.name for module in self.modules],
            commands=[command.name for command in self.tree.dispatcher.children],
        )

    async def handle_message(
        self, message: InboundMessage, responder: Responder
    ) -> Optional[CommandResult]:
        return await self.tree.process_message(message, responder, self.ctx)

    async def stop(self):
        """Disconnect and release resources."""
        if not self.running:
            return
        self.running = False
        if self.client is not None and not self.client.is_closed():
            await self.client.close()
        if self.paste is not None:
            await self.paste.close()
        logger.info("bot_stopped")

    async def run(self):
        """Start, connect to Discord and serve until disconnected."""
        if not self.config.discord_token:
            raise ConfigurationError(
                "no Discord token configured", setting_name="DISCORD_API_TOKEN"
            )
        await self.start()
        self.client = build_client(self.handle_message, self.config.presence)
        try:
            await self.client.start(self.config.discord_token)
        finally:
            await self.stop()
