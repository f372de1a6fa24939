from __future__ import annotations

import pytest_asyncio

from src.database.db import Database


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh SQLite user store under tmp_path."""
    database = Database(str(tmp_path / "bot.db"))
    await database.initialize()
    yield database
    await database.close()
