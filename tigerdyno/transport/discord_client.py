"""Discord transport.

Turns gateway messages into InboundMessage and hands them to the bot
together with a responder bound to the originating message. Messages
from bots and direct messages are ignored. discord.py already runs
each event handler in its own task, so one slow command does not hold
up others.

Key classes:
    DiscordResponder: send/acknowledge bound to one discord.Message.

Key functions:
    to_inbound: discord.Message -> InboundMessage.
    build_client: Create the discord.Client with handlers attached.
"""

from typing import Awaitable, Callable, Optional

import discord
import structlog

from ..commands.base import InboundMessage, Responder

logger = structlog.get_logger("tigerdyno.bot")

MAX_MESSAGE_LENGTH = 2000
CHECK_MARK = "\N{WHITE HEAVY CHECK MARK}"

MessageHandler = Callable[[InboundMessage, Responder], Awaitable[object]]


def clamp_text(text: str) -> str:
    """Ensure Discord-compatible message length."""
    if len(text) <= MAX_MESSAGE_LENGTH:
        return text
    return text[: MAX_MESSAGE_LENGTH - 1].rstrip() + "\N{HORIZONTAL ELLIPSIS}"


class DiscordResponder:
    def __init__(self, message: discord.Message):
        self._message = message

    async def send(self, text: str) -> None:
        await self._message.channel.send(clamp_text(text))

    async def acknowledge(self) -> None:
        await self._message.add_reaction(CHECK_MARK)


def to_inbound(message: discord.Message, bot_user: Optional[discord.abc.User]) -> InboundMessage:
    mentions_bot = bot_user is not None and any(user.id == bot_user.id for user in message.mentions)
    return InboundMessage(
        raw_text=message.content,
        author_id=str(message.author.id),
        channel_id=str(message.channel.id),
        server_id=str(message.guild.id) if message.guild is not None else None,
        mentions_bot=mentions_bot,
    )


def build_client(
    handler: MessageHandler,
    presence: str,
    intents: Optional[discord.Intents] = None,
) -> discord.Client:
    """Create a client that forwards server messages to ``handler``."""
    intents = intents or discord.Intents.default()
    intents.message_content = True
    client = discord.Client(intents=intents, activity=discord.Game(name=presence))

    @client.event
    async def on_ready() -> None:
        logger.info("discord_connected", user=str(client.user), servers=len(client.guilds))

    @client.event
    async def on_message(message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        await handler(to_inbound(message, client.user), DiscordResponder(message))

    return client
