"""
logging_config.py

Configures logging for the whole bot: colored output on the console and a
rotating log file that is written from a worker thread, so file I/O never
stalls the event loop that also drives the reminder scheduler.
"""
import logging
from logging.handlers import RotatingFileHandler
import sys
import asyncio
from typing import Optional


class AsyncFileHandler(logging.Handler):
    """
    Wraps a RotatingFileHandler and hands each write to a thread when an
    event loop is running. Without a loop (startup, shutdown) it writes inline.
    """
    def __init__(self, filename: str, maxBytes: int = 0, backupCount: int = 0):
        super().__init__()
        self._handler = RotatingFileHandler(filename, maxBytes=maxBytes, backupCount=backupCount, encoding='utf-8')

    def setFormatter(self, fmt):
        super().setFormatter(fmt)
        self._handler.setFormatter(fmt)

    def emit(self, record):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._handler.emit(record)
            return
        loop.create_task(asyncio.to_thread(self._handler.emit, record))

    def close(self):
        self._handler.close()
        super().close()


class ColorFormatter(logging.Formatter):
    """Colors the whole line by severity."""
    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"

    FORMATS = {
        logging.DEBUG: grey + format_str + reset,
        logging.INFO: grey + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        formatter = logging.Formatter(self.FORMATS.get(record.levelno, self.format_str))
        return formatter.format(record)


def setup_logging(
    level: str = "INFO",
    log_path: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 2,
) -> None:
    """
    Sets up the root logger.

    - A console handler with colored output.
    - If `log_path` is given, an asynchronous rotating file handler.
    - Existing handlers are cleared so calling this twice doesn't duplicate lines.
    - discord.py and websockets are turned down to WARNING; they are chatty.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter())
    root_logger.addHandler(console_handler)

    if log_path:
        file_handler = AsyncFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(funcName)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(file_handler)

    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('websockets').setLevel(logging.WARNING)

    root_logger.info("Logging configured.")
