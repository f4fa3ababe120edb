"""
cogs/reminders.py

This cog connects the reminder machinery to Discord.

- Every guild message is turned into an `InboundEvent` and handed to the
  `ReminderDispatcher`, which ignores anything that isn't a `!remindme`
  command.
- The `ReminderScheduler` is started once the bot is ready and stopped when
  the cog is unloaded (which `bot.close()` does on shutdown). Reminders live
  in the database, so nothing is lost across restarts: anything that came due
  while the bot was offline goes out on the first tick.
"""
import logging

import discord
from discord.ext import commands

import config
from utils.bot_class import GopnikBot
from utils.dispatcher import InboundEvent, ReminderDispatcher
from utils.scheduler import ReminderScheduler


class Reminders(commands.Cog):
    """Reminder commands and delivery."""
    def __init__(self, bot: GopnikBot):
        self.bot = bot
        self.logger = logging.getLogger(self.__class__.__name__)
        assert bot.db_manager is not None
        assert config.REMINDERS_CHANNEL_ID is not None

        self.dispatcher = ReminderDispatcher(
            bot.db_manager,
            bot.notifier,
            prefix=config.COMMAND_PREFIX,
            home_timezone=config.HOME_TIMEZONE,
            year_window=config.YEAR_WINDOW,
        )
        self.scheduler = ReminderScheduler(
            bot.db_manager,
            bot.notifier,
            config.REMINDERS_CHANNEL_ID,
            interval_seconds=config.SWEEP_INTERVAL,
        )

    async def cog_unload(self) -> None:
        """Stops the scheduler, waiting for a sweep in progress."""
        await self.scheduler.shutdown()

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        # on_ready fires again after a reconnect; start() is a no-op then.
        if self.bot.user:
            self.dispatcher.bot_user_id = str(self.bot.user.id)
        self.scheduler.start()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        event = InboundEvent(
            author_id=str(message.author.id),
            author_is_automated=message.author.bot,
            channel_id=message.channel.id,
            message_id=message.id,
            content=message.content,
        )
        try:
            await self.dispatcher.handle(event)
        except Exception as e:
            self.logger.error(f"Error handling message {message.id} from {message.author.id}: {e}", exc_info=True)
            try:
                await message.reply("Sorry, an internal error occurred. The issue has been logged.", mention_author=False)
            except discord.HTTPException:
                self.logger.error(f"Failed to send error message to channel {message.channel.id}")


async def setup(bot: GopnikBot) -> None:
    await bot.add_cog(Reminders(bot))
