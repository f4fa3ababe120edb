"""
Reminder Scheduler Module

Background task loop that delivers due reminders. Once per interval it asks
the database for everything that is due, broadcasts each reminder to the
reminders channel and deletes what it delivered in one batch.

Delivery is at-least-once across restarts (a reminder that was sent but not
yet deleted is sent again on the next tick), but a failed send is not
retried: the reminder is deleted anyway and the failure is only logged.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from discord.ext import tasks

from utils.database import DatabaseManager
from utils.errors import PersistenceError
from utils.notifier import Notifier

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


def format_delivery(owner: str, text: str) -> str:
    return f"<@{owner}>, reminding you to {text}."


class ReminderScheduler:
    """
    Runs `sweep` on a fixed interval using `discord.ext.tasks`.

    Ticks never overlap: the task loop runs its body sequentially, and a lock
    around `sweep` covers manual calls and shutdown.
    """

    def __init__(
        self,
        store: DatabaseManager,
        notifier: Notifier,
        channel_id: int,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        """
        Args:
            store: The reminder database.
            notifier: Used to broadcast due reminders.
            channel_id: The channel every reminder is delivered to.
            interval_seconds: Time between two sweeps.
        """
        self.store = store
        self.notifier = notifier
        self.channel_id = channel_id
        self._sweep_lock = asyncio.Lock()
        self._check_reminders.change_interval(seconds=interval_seconds)

    @property
    def running(self) -> bool:
        return self._check_reminders.is_running()

    def start(self) -> None:
        """Start the scheduler loop. Does nothing if it is already running."""
        if not self.running:
            self._check_reminders.start()
            logger.info(f"Reminder scheduler started (every {self._check_reminders.seconds:g}s).")

    async def shutdown(self) -> None:
        """
        Stop the scheduler loop. A sweep that is already in progress is allowed
        to finish first; the loop is only cancelled while it is idle.
        """
        async with self._sweep_lock:
            if self.running:
                self._check_reminders.cancel()
                logger.info("Reminder scheduler stopped.")

    @tasks.loop(seconds=DEFAULT_INTERVAL_SECONDS)
    async def _check_reminders(self) -> None:
        try:
            await self.sweep()
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {e}", exc_info=True)

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Delivers every reminder that is due at `now` (defaults to the current
        UTC time) and deletes the delivered rows.

        Returns:
            int: The number of reminders that were processed.
        """
        async with self._sweep_lock:
            return await self._sweep(now or datetime.now(timezone.utc))

    async def _sweep(self, now: datetime) -> int:
        if not await self.store.is_initialized():
            logger.info("Database not bootstrapped yet, nothing to check.")
            return 0

        try:
            candidates = await self.store.get_due_reminders(now)
        except PersistenceError as e:
            logger.error(f"Error querying due reminders: {e}")
            return 0

        delivered: list[int] = []
        for reminder in candidates:
            if not reminder.target_time < now:
                continue
            try:
                await self.notifier.broadcast(self.channel_id, format_delivery(reminder.owner, reminder.text))
                logger.info(f"Delivered reminder {reminder.id} to {reminder.owner}.")
            except Exception as e:
                logger.error(f"Failed to deliver reminder {reminder.id} to {reminder.owner}: {e}")
            delivered.append(reminder.id)

        if delivered:
            try:
                await self.store.delete_reminders(delivered)
            except PersistenceError as e:
                logger.error(f"Error deleting delivered reminders {delivered}: {e}")
        return len(delivered)
