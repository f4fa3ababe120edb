"""
notifier.py

The two ways the reminder code talks back to Discord: replying to the message
that triggered a command, and broadcasting to the configured reminders
channel. The dispatcher and the scheduler only ever see the `Notifier`
protocol, which keeps them independent of the gateway session (and lets the
tests use a fake).
"""
from __future__ import annotations
import logging
from typing import Optional, Protocol, TYPE_CHECKING

import discord

from utils.errors import DeliveryError

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger(__name__)

# Discord rejects messages longer than this.
MESSAGE_LIMIT = 2000


class Notifier(Protocol):
    async def reply(self, channel_id: int, text: str, in_reply_to: Optional[int] = None) -> None: ...

    async def broadcast(self, channel_id: int, text: str) -> None: ...


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """
    Splits `text` into chunks Discord will accept, preferring to break on
    newlines so numbered lists stay readable.
    """
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks


class DiscordNotifier:
    """Sends messages through a connected `discord.py` bot."""

    def __init__(self, bot: "commands.Bot"):
        self.bot = bot

    async def _get_channel(self, channel_id: int) -> discord.abc.Messageable:
        try:
            channel = self.bot.get_channel(channel_id) or await self.bot.fetch_channel(channel_id)
        except discord.HTTPException as e:
            raise DeliveryError(f"Channel {channel_id} could not be fetched: {e}") from e
        if not isinstance(channel, discord.abc.Messageable):
            raise DeliveryError(f"Channel {channel_id} is not a text channel.")
        return channel

    async def _send(self, channel_id: int, text: str, reference: Optional[discord.MessageReference] = None) -> None:
        channel = await self._get_channel(channel_id)
        try:
            for i, chunk in enumerate(split_message(text)):
                # Only the first chunk is threaded onto the original message.
                if i == 0 and reference is not None:
                    await channel.send(chunk, reference=reference, mention_author=False)
                else:
                    await channel.send(chunk)
        except discord.HTTPException as e:
            raise DeliveryError(f"Failed to send a message to channel {channel_id}: {e}") from e

    async def reply(self, channel_id: int, text: str, in_reply_to: Optional[int] = None) -> None:
        reference = None
        if in_reply_to is not None:
            reference = discord.MessageReference(
                message_id=in_reply_to, channel_id=channel_id, fail_if_not_exists=False
            )
        await self._send(channel_id, text, reference)

    async def broadcast(self, channel_id: int, text: str) -> None:
        await self._send(channel_id, text)
