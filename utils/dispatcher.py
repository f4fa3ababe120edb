"""
dispatcher.py

Handles one inbound chat message at a time: decides whether it is a reminder
command, parses and validates it, stores the reminder and answers the author.

The dispatcher knows nothing about discord.py; the Reminders cog turns a
`discord.Message` into an `InboundEvent` and hands it over.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from utils.database import DatabaseManager
from utils.errors import CommandSyntaxError, PersistenceError, ValidationError
from utils.notifier import Notifier
from utils import time_parser
from utils.time_parser import AbsoluteSpec, RelativeSpec

logger = logging.getLogger(__name__)

MAX_REMINDER_LENGTH = 1500
LIST_COMMAND = "list pending reminders"


@dataclass(frozen=True)
class InboundEvent:
    author_id: str
    author_is_automated: bool
    channel_id: int
    message_id: Optional[int]
    content: str


def personalize(text: str) -> str:
    """Rewrites " my " to " your " so the reminder reads right when echoed back to its author."""
    return text.replace(" my ", " your ")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReminderDispatcher:
    """Routes reminder commands to the parser and the database."""

    def __init__(
        self,
        store: DatabaseManager,
        notifier: Notifier,
        bot_user_id: Optional[str] = None,
        prefix: str = time_parser.DEFAULT_PREFIX,
        home_timezone: str = "UTC",
        year_window: int = 1,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self.bot_user_id = bot_user_id
        self.prefix = prefix
        self.home_timezone = home_timezone
        self.year_window = year_window
        self.clock = clock

    async def _reply(self, event: InboundEvent, text: str) -> None:
        await self.notifier.reply(event.channel_id, text, event.message_id)

    async def handle(self, event: InboundEvent) -> None:
        # Ignore our own messages and other bots' shenanigans.
        if event.author_is_automated or (self.bot_user_id and event.author_id == self.bot_user_id):
            return

        query = time_parser.strip_prefix(event.content, self.prefix)
        if query is None:
            return

        if query.lower() == LIST_COMMAND:
            await self.list_pending(event)
            return

        logger.info(f"Reminder command from {event.author_id}: '{query}'")
        try:
            spec = time_parser.parse_time_expression(query)
        except CommandSyntaxError:
            await self._reply(event, time_parser.SYNTAX_HELP.format(prefix=self.prefix))
            return

        text = personalize(spec.payload)
        if isinstance(spec, RelativeSpec) and spec.amount == 0:
            await self._reply(event, f"Immediately reminding you to {text}, you silly goose.")
            return

        if len(text) > MAX_REMINDER_LENGTH:
            await self._reply(
                event,
                f"That reminder is too long ({len(text)} characters). "
                f"Keep it under {MAX_REMINDER_LENGTH} characters."
            )
            return

        if isinstance(spec, RelativeSpec):
            await self._handle_relative(event, spec, text)
        else:
            await self._handle_absolute(event, spec, text)

    async def _handle_relative(self, event: InboundEvent, spec: RelativeSpec, text: str) -> None:
        target = time_parser.resolve_relative(spec, self.clock())
        await self._save(event, target, text, f"in {spec.amount} {spec.unit_text}")

    async def _handle_absolute(self, event: InboundEvent, spec: AbsoluteSpec, text: str) -> None:
        try:
            target = time_parser.resolve_absolute(spec, self.clock(), self.home_timezone, self.year_window)
        except ValidationError as e:
            logger.info(f"Rejected absolute reminder from {event.author_id}: {e}")
            await self._reply(event, str(e))
            return

        tz = time_parser.resolve_timezone(spec.timezone or self.home_timezone)
        await self._save(event, target, text, f"on {time_parser.format_local_time(target, tz)}")

    async def _save(self, event: InboundEvent, target: datetime, text: str, when: str) -> None:
        try:
            reminder_id = await self.store.add_reminder(event.author_id, target, text)
        except PersistenceError as e:
            logger.error(f"Error inserting reminder into the database: {e}")
            await self._reply(event, "Something went wrong while saving your reminder. The issue has been logged.")
            return

        logger.info(f"Reminder {reminder_id} set for {event.author_id} at {target.isoformat()}.")
        await self._reply(event, f"Successfully added to the database. I'll remind you {when}.")

    async def list_pending(self, event: InboundEvent) -> None:
        try:
            reminders = await self.store.get_user_reminders(event.author_id)
        except PersistenceError as e:
            logger.error(f"Error listing reminders for {event.author_id}: {e}")
            await self._reply(event, "Something went wrong while fetching your reminders. The issue has been logged.")
            return

        if not reminders:
            await self._reply(event, "You have no pending reminders.")
            return

        # Discord renders <t:...> in each reader's own locale.
        lines = ["Your pending reminders:"]
        for i, reminder in enumerate(reminders, 1):
            lines.append(f"{i}. <t:{int(reminder.target_time.timestamp())}:F>: {reminder.text}")
        await self._reply(event, "\n".join(lines))
