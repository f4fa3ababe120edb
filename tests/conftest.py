"""Shared fixtures for the reminder tests."""

import pytest_asyncio

from utils.database import DatabaseManager


@pytest_asyncio.fixture
async def store(tmp_path):
    manager = await DatabaseManager.create(str(tmp_path / "reminders.db"))
    yield manager
    await manager.close()
