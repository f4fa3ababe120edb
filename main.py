"""
main.py

This is the primary entry point for the reminder bot. Its responsibilities are:

1.  Performing initial setup: logging and configuration validation.
2.  Bootstrapping the reminder database (fatal if it fails).
3.  Instantiating the custom `GopnikBot` class from `utils.bot_class` and
    loading the cogs.
4.  Installing SIGINT/SIGTERM handlers for a graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

import config
from utils.logging_config import setup_logging
from utils.bot_class import GopnikBot
from utils.database import DatabaseManager
from utils.errors import StartupError, PersistenceError
from utils.lifecycle import shutdown_handler
from utils.extensions import discover_cogs

setup_logging(
    config.LOG_LEVEL,
    log_path=config.LOG_PATH,
    max_bytes=config.LOG_MAX_BYTES,
    backup_count=config.LOG_BACKUP_COUNT,
)

try:
    config.validate()
except StartupError as e:
    logging.critical(str(e))
    sys.exit(f"Critical error: {e}")

bot = GopnikBot()


async def main() -> None:
    """
    The main asynchronous entry point for initializing and running the bot.
    The database is ready before the bot logs in.
    """
    logging.info("Gopnik is starting...")

    try:
        bot.db_manager = await DatabaseManager.create(config.DB_PATH)
    except PersistenceError as e:
        logging.critical(f"Error bootstrapping the database: {e}")
        raise StartupError(str(e)) from e

    async with bot:
        cogs_to_load = discover_cogs(config.COGS_PATH)
        logging.info(f"Found {len(cogs_to_load)} cogs to load.")
        for extension in cogs_to_load:
            try:
                await bot.load_extension(extension)
                logging.info(f"Successfully loaded extension: {extension}")
            except Exception as e:
                # Without the reminders cog the bot has nothing to do.
                raise StartupError(f"Failed to load extension {extension}: {e}") from e

        assert config.TOKEN is not None
        await bot.start(config.TOKEN)


async def run_bot_with_handlers():
    """
    Wraps the main bot logic with signal handlers for graceful shutdown.
    """
    loop = asyncio.get_running_loop()

    if sys.platform != "win32":
        for s in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(
                s, lambda s=s: asyncio.create_task(shutdown_handler(s, bot))
            )

    await main()


if __name__ == '__main__':
    try:
        asyncio.run(run_bot_with_handlers())
    except StartupError as e:
        logging.critical(f"Startup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        # Windows has no signal handlers; Ctrl-C lands here.
        pass
    finally:
        logging.info("Gopnik has shut down.")
