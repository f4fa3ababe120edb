"""
Defines the custom bot class, `GopnikBot`, which extends `discord.ext.commands.Bot`.

This class holds the shared application state: the database manager and the
notifier the Reminders cog builds its dispatcher and scheduler from. Message
handling itself lives in `cogs/reminders.py`.
"""
from __future__ import annotations
import discord
from discord.ext import commands
from typing import Optional, TYPE_CHECKING
import logging
from utils.lifecycle import startup_handler
from utils.notifier import DiscordNotifier

# Import the type hint for the database manager, but only for type checking
# to avoid circular imports at runtime.
if TYPE_CHECKING:
    from utils.database import DatabaseManager


class GopnikBot(commands.Bot):
    """
    The main bot class. It listens to guild messages only; there are no
    decorator-based commands, the Reminders cog reads message content itself.
    """
    def __init__(self, **kwargs):
        intents = discord.Intents.default()
        intents.guild_messages = True
        intents.message_content = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            **kwargs
        )

        self.db_manager: Optional[DatabaseManager] = None
        self.notifier = DiscordNotifier(self)

    async def on_ready(self):
        """Called when the bot is ready; triggers the startup handler."""
        await startup_handler(self)

    async def close(self) -> None:
        """
        Closes the gateway connection, then the database.

        `commands.Bot.close` unloads every extension first, which stops the
        reminder scheduler before the database handle goes away.
        """
        logging.info("Closing bot connection...")
        await super().close()
        logging.info("Connection closed.")

        if self.db_manager is not None:
            await self.db_manager.close()
