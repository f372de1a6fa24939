"""OVH Diagnostic Bot — SQLite Connection Manager.

Provides async SQLite database connection management using aiosqlite.
Handles database initialization, schema creation for the user store,
and connection lifecycle.
"""

from __future__ import annotations

import aiosqlite
from pathlib import Path

from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Schema Definitions ────────────────────────────────────
SCHEMA_SQL = """
-- ═══ Users Table ═══
-- Chat users, their OVH consumer key and notification preferences.
CREATE TABLE IF NOT EXISTS users (
    sender_id       TEXT    PRIMARY KEY,
    platform        TEXT    NOT NULL,
    locale          TEXT    DEFAULT 'fr_FR',
    team_id         TEXT,
    consumer_key    TEXT    DEFAULT '',
    updates         INTEGER DEFAULT 0,
    expires         INTEGER DEFAULT 0,
    expires_period  INTEGER DEFAULT 30,
    created_at      DATETIME DEFAULT (datetime('now', 'localtime'))
);

-- ═══ Slack Teams Table ═══
-- One bot token per Slack workspace the bot is installed in.
CREATE TABLE IF NOT EXISTS slack_teams (
    team_id     TEXT    PRIMARY KEY,
    team_name   TEXT    DEFAULT '',
    bot_token   TEXT    NOT NULL,
    installed_at DATETIME DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_users_updates  ON users(updates);
CREATE INDEX IF NOT EXISTS idx_users_expires  ON users(expires);
CREATE INDEX IF NOT EXISTS idx_users_team     ON users(team_id);
"""


class Database:
    """Async SQLite database connection manager.

    Manages the database lifecycle including initialization, schema creation,
    and a persistent connection with WAL mode enabled.

    Attributes:
        db_path: Resolved absolute path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        """Initialize the database manager.

        Args:
            db_path: Relative or absolute path to the SQLite database file.
                     Parent directories will be created if they don't exist.
        """
        self.db_path = Path(db_path).resolve()
        self._connection: aiosqlite.Connection | None = None
        logger.debug("Database manager initialized with path: %s", self.db_path)

    async def initialize(self) -> None:
        """Open the connection, set pragmas and create the schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Connecting to database: %s", self.db_path)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.execute("PRAGMA journal_mode=WAL")
        self._connection.row_factory = aiosqlite.Row

        await self._connection.executescript(SCHEMA_SQL)
        await self._connection.commit()

        logger.info("Database initialized — all tables ready")

    async def get_connection(self) -> aiosqlite.Connection:
        """Get the active database connection, initializing if necessary."""
        if self._connection is None:
            await self.initialize()
        return self._connection

    async def close(self) -> None:
        """Close the database connection. Safe to call twice."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.initialize()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
