"""
errors.py

Exception types shared by the reminder pipeline. Everything the bot raises on
purpose derives from `ReminderError`, so the cog can tell an expected,
user-facing failure apart from a genuine bug.
"""


class ReminderError(Exception):
    """Base class for all reminder-related errors."""


class CommandSyntaxError(ReminderError):
    """The message used the command prefix but matched neither time grammar."""


class ValidationError(ReminderError):
    """The command parsed, but the date, time, timezone or text is not acceptable.

    The message is shown to the user verbatim.
    """


class PersistenceError(ReminderError):
    """The reminder database could not be read or written."""


class DeliveryError(ReminderError):
    """A Discord message could not be delivered."""


class StartupError(ReminderError):
    """Configuration or database bootstrap failed; the bot cannot run."""
