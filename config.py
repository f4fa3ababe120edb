"""
config.py

This module centralizes all configuration settings for the reminder bot.
It handles path definitions and loading environment variables (like the bot
token). Values come from the process environment; an optional `info.env` file
next to the code is loaded first so a deployment can keep them on disk.

Nothing here exits the process. `main.py` calls `validate()` at startup and
aborts if a required value is missing.
"""
import os
import logging
import pytz
from dotenv import load_dotenv

from utils.errors import StartupError

# --- Core Paths ---
APP_PATH = os.path.dirname(os.path.abspath(__file__))
ENV_PATH = os.path.join(APP_PATH, 'info.env')
LOG_PATH = os.path.join(APP_PATH, 'gopnik.log')
COGS_PATH = os.path.join(APP_PATH, 'cogs')

# Existing environment variables win over the file.
if os.path.exists(ENV_PATH):
    load_dotenv(dotenv_path=ENV_PATH)


def _int_or_none(raw: str | None) -> int | None:
    return int(raw) if raw and raw.strip().isdigit() else None


# --- Environment Variables ---
TOKEN = os.getenv('GOPNIK_TOKEN')
raw_reminders_channel = os.getenv('REMINDERS_CHANNEL')
REMINDERS_CHANNEL_ID = _int_or_none(raw_reminders_channel)

DB_PATH = os.getenv('REMINDERS_DB') or os.path.join(APP_PATH, 'reminders.db')
COMMAND_PREFIX = os.getenv('COMMAND_PREFIX') or '!remindme'

# The original deployment's business choices; both are only defaults.
HOME_TIMEZONE = os.getenv('HOME_TIMEZONE') or 'Europe/Zagreb'
YEAR_WINDOW = _int_or_none(os.getenv('YEAR_WINDOW'))
if YEAR_WINDOW is None:
    YEAR_WINDOW = 1

SWEEP_INTERVAL = float(os.getenv('SWEEP_INTERVAL') or 60)

# --- Logging Configuration ---
LOG_LEVEL = (os.getenv('LOG_LEVEL') or 'INFO').upper()
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 2


def validate() -> None:
    """
    Checks the settings the bot cannot run without.

    Raises:
        StartupError: With a message naming the missing or malformed variable.
    """
    if not TOKEN:
        raise StartupError("Bot token not found. Make sure to set the GOPNIK_TOKEN environment variable.")
    if not raw_reminders_channel:
        raise StartupError("Reminders channel ID not found. Make sure to set the REMINDERS_CHANNEL environment variable.")
    if REMINDERS_CHANNEL_ID is None:
        raise StartupError(f"REMINDERS_CHANNEL must be a numeric channel ID, got '{raw_reminders_channel}'.")
    if SWEEP_INTERVAL <= 0:
        raise StartupError(f"SWEEP_INTERVAL must be positive, got {SWEEP_INTERVAL}.")
    try:
        pytz.timezone(HOME_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        raise StartupError(f"HOME_TIMEZONE must be an IANA timezone name, got '{HOME_TIMEZONE}'.") from None
    if LOG_LEVEL not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        logging.warning(f"Unknown LOG_LEVEL '{LOG_LEVEL}', falling back to INFO.")
