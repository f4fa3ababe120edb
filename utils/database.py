"""
database.py

This module contains the DatabaseManager class, which handles all interactions
with the SQLite reminder database. It abstracts away the SQL queries and
provides a small asynchronous interface for the dispatcher and the scheduler.

Responsibilities:
- Opening the database once on startup and closing it on shutdown.
- Creating the `reminders` table on startup if it is missing (`_setup_database`).
- Creating, listing and deleting reminders. There is no update.

Times are stored as integer Unix timestamps (UTC, second precision) and handed
out as timezone-aware UTC datetimes.
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List, Iterable

import aiosqlite

from utils.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reminder:
    """A pending reminder as stored in the database."""
    id: int
    owner: str
    target_time: datetime
    text: str

    @classmethod
    def from_row(cls, row: aiosqlite.Row) -> "Reminder":
        return cls(
            id=row['id'],
            owner=row['who'],
            target_time=datetime.fromtimestamp(row['time'], tz=timezone.utc),
            text=row['toRemind'],
        )


def _to_timestamp(moment: datetime) -> int:
    if moment.tzinfo is None:
        raise ValueError("Reminder times must be timezone-aware.")
    return int(moment.timestamp())


class DatabaseManager:
    """
    Manages all database operations for the reminder bot, providing an async
    interface over a single aiosqlite connection.
    """

    def __init__(self, db_path: str):
        """
        Initializes the DatabaseManager. Use `DatabaseManager.create` to get a
        connected instance.

        Args:
            db_path (str): The file path to the SQLite database.
        """
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None

    @classmethod
    async def create(cls, db_path: str) -> "DatabaseManager":
        """
        Creates and initializes a new DatabaseManager instance.

        This factory method opens the connection and makes sure the schema
        exists. Running it against an existing database leaves the data alone.

        Args:
            db_path (str): The file path to the SQLite database.

        Returns:
            DatabaseManager: A fully initialized DatabaseManager instance.

        Raises:
            PersistenceError: If the database cannot be opened or bootstrapped.
        """
        manager = cls(db_path)
        try:
            manager._db = await aiosqlite.connect(db_path)
            manager._db.row_factory = aiosqlite.Row
            await manager._setup_database()
        except aiosqlite.Error as e:
            await manager.close()
            raise PersistenceError(f"Could not bootstrap the database at '{db_path}': {e}") from e
        return manager

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise PersistenceError("The database connection is closed.")
        return self._db

    async def _setup_database(self) -> None:
        """Creates the reminders table and its index if they don't already exist."""
        # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
        await self.db.execute('''
            CREATE TABLE IF NOT EXISTS reminders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                who TEXT NOT NULL,
                time INTEGER NOT NULL,
                toRemind TEXT NOT NULL
            )''')
        await self.db.execute('CREATE INDEX IF NOT EXISTS idx_reminders_time ON reminders (time);')
        await self.db.commit()
        logger.info(f"Reminder database initialized at '{self.db_path}'.")

    async def is_initialized(self) -> bool:
        """
        Returns True if the database is open and the reminders table exists.
        The scheduler skips its tick while this is False.
        """
        if self._db is None:
            return False
        if self.db_path != ":memory:" and not os.path.exists(self.db_path):
            return False
        try:
            cursor = await self._db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'reminders'"
            )
            return await cursor.fetchone() is not None
        except aiosqlite.Error as e:
            logger.error(f"Failed to inspect the database schema: {e}")
            return False

    async def close(self) -> None:
        """Closes the connection. Calling it again is harmless."""
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("Reminder database connection closed.")

    async def add_reminder(self, owner: str, target_time: datetime, text: str) -> int:
        """Adds a reminder to the database and returns the new reminder's ID."""
        try:
            cursor = await self.db.execute(
                "INSERT INTO reminders (who, time, toRemind) VALUES (?, ?, ?)",
                (owner, _to_timestamp(target_time), text)
            )
            await self.db.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to insert reminder for {owner}: {e}") from e
        reminder_id = cursor.lastrowid
        assert reminder_id is not None
        return reminder_id

    async def get_due_reminders(self, now: datetime) -> List[Reminder]:
        """Fetches all reminders whose time is at or before `now`."""
        try:
            cursor = await self.db.execute(
                "SELECT * FROM reminders WHERE time <= ? ORDER BY time ASC", (_to_timestamp(now),)
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to fetch due reminders: {e}") from e
        return [Reminder.from_row(row) for row in rows]

    async def get_user_reminders(self, owner: str) -> List[Reminder]:
        """Fetches all reminders for a specific user, ordered by due time."""
        try:
            cursor = await self.db.execute(
                "SELECT * FROM reminders WHERE who = ? ORDER BY time ASC, id ASC", (owner,)
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to fetch reminders for {owner}: {e}") from e
        return [Reminder.from_row(row) for row in rows]

    async def delete_reminders(self, reminder_ids: Iterable[int]) -> None:
        """Deletes one or more reminders from the database by their IDs."""
        reminder_ids = list(reminder_ids)
        if not reminder_ids:
            return
        try:
            await self.db.execute(
                f"DELETE FROM reminders WHERE id IN ({','.join('?' for _ in reminder_ids)})", reminder_ids
            )
            await self.db.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to delete reminders {reminder_ids}: {e}") from e
        logger.info(f"Deleted {len(reminder_ids)} reminder(s): {reminder_ids}")
