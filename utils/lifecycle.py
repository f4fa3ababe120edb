import logging
import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .bot_class import GopnikBot


async def startup_handler(bot: "GopnikBot"):
    """Logs who we are and where we are once the gateway is ready."""
    if bot.user:
        logging.info(f'Logged in as {bot.user} (ID: {bot.user.id})')
    else:
        logging.error("Bot user information not available on ready.")

    logging.info("Connected to the following guilds:")
    for guild in bot.guilds:
        logging.info(f"- {guild.name} (ID: {guild.id})")


async def shutdown_handler(sig: signal.Signals, bot: "GopnikBot"):
    """
    Handles the graceful shutdown of the bot when a signal is received.
    `GopnikBot.close` stops the scheduler (letting a running sweep finish)
    and closes the database after the gateway.
    """
    logging.info(f"Received exit signal {sig.name}...")
    if bot.is_closed():
        return
    logging.info("Closing connections...")
    await bot.close()
    logging.info("Discord connection has been shut down gracefully.")
