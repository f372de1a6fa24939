"""OVH Diagnostic Bot — Database Query Operations.

All async user-store reads and writes. Every function:
  - Uses parameterized queries (? placeholders, never f-strings for values)
  - Handles connection via the Database instance
  - Commits after writes
  - Returns dataclasses rather than raw rows
"""

from __future__ import annotations

from typing import Any, Optional

from src.database.db import Database
from src.database.models import SlackTeam, User
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _row_to_dict(row: Any) -> dict[str, Any]:
    """Convert an aiosqlite Row to a plain dictionary."""
    return dict(row)


# ═══════════════════════════════════════════════════════════
# User Operations
# ═══════════════════════════════════════════════════════════


async def find_users(
    db: Database,
    updates: Optional[bool] = None,
    expires: Optional[bool] = None,
) -> list[User]:
    """Return users matching the given subscription flags.

    A flag left to None does not filter. Results are ordered by
    creation time so the scheduled scans visit users in a stable order.

    Args:
        db: Active database instance.
        updates: Filter on the status-update subscription.
        expires: Filter on the expiry-reminder subscription.

    Returns:
        Matching users.
    """
    clauses: list[str] = []
    params: list[Any] = []
    if updates is not None:
        clauses.append("updates = ?")
        params.append(int(updates))
    if expires is not None:
        clauses.append("expires = ?")
        params.append(int(expires))

    sql = "SELECT * FROM users"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at, sender_id"

    conn = await db.get_connection()
    cursor = await conn.execute(sql, params)
    rows = await cursor.fetchall()
    users = [User.from_db_row(_row_to_dict(r)) for r in rows]
    logger.debug("find_users(updates=%s, expires=%s) → %d", updates, expires, len(users))
    return users


async def find_user(db: Database, sender_id: str) -> Optional[User]:
    """Retrieve a single user by sender id, or None if unknown."""
    conn = await db.get_connection()
    cursor = await conn.execute(
        "SELECT * FROM users WHERE sender_id = ? LIMIT 1",
        (sender_id,),
    )
    row = await cursor.fetchone()
    return User.from_db_row(_row_to_dict(row)) if row else None


async def upsert_user(db: Database, user: User) -> None:
    """Insert a user or replace its stored fields."""
    conn = await db.get_connection()
    d = user.to_db_dict()
    await conn.execute(
        """
        INSERT INTO users (
            sender_id, platform, locale, team_id, consumer_key,
            updates, expires, expires_period
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(sender_id) DO UPDATE SET
            platform = excluded.platform,
            locale = excluded.locale,
            team_id = excluded.team_id,
            consumer_key = excluded.consumer_key,
            updates = excluded.updates,
            expires = excluded.expires,
            expires_period = excluded.expires_period
        """,
        (
            d["sender_id"], d["platform"], d["locale"], d["team_id"],
            d["consumer_key"], d["updates"], d["expires"], d["expires_period"],
        ),
    )
    await conn.commit()
    logger.debug("Upserted user %s (%s)", user.sender_id, user.platform)


async def set_user_flags(
    db: Database,
    sender_id: str,
    updates: Optional[bool] = None,
    expires: Optional[bool] = None,
    expires_period: Optional[int] = None,
) -> None:
    """Update a user's subscription flags; None leaves a field unchanged."""
    assignments: list[str] = []
    params: list[Any] = []
    if updates is not None:
        assignments.append("updates = ?")
        params.append(int(updates))
    if expires is not None:
        assignments.append("expires = ?")
        params.append(int(expires))
    if expires_period is not None:
        assignments.append("expires_period = ?")
        params.append(expires_period)
    if not assignments:
        return

    params.append(sender_id)
    conn = await db.get_connection()
    await conn.execute(
        f"UPDATE users SET {', '.join(assignments)} WHERE sender_id = ?",
        params,
    )
    await conn.commit()
    logger.debug("Updated flags for %s: %s", sender_id, ", ".join(assignments))


# ═══════════════════════════════════════════════════════════
# Slack Team Operations
# ═══════════════════════════════════════════════════════════


async def get_slack_team(db: Database, team_id: str) -> Optional[SlackTeam]:
    """Retrieve a Slack workspace by team id, or None if not installed."""
    conn = await db.get_connection()
    cursor = await conn.execute(
        "SELECT * FROM slack_teams WHERE team_id = ? LIMIT 1",
        (team_id,),
    )
    row = await cursor.fetchone()
    return SlackTeam.from_db_row(_row_to_dict(row)) if row else None


async def upsert_slack_team(db: Database, team: SlackTeam) -> None:
    """Insert a Slack workspace or refresh its bot token."""
    conn = await db.get_connection()
    d = team.to_db_dict()
    await conn.execute(
        """
        INSERT INTO slack_teams (team_id, team_name, bot_token)
        VALUES (?, ?, ?)
        ON CONFLICT(team_id) DO UPDATE SET
            team_name = excluded.team_name,
            bot_token = excluded.bot_token
        """,
        (d["team_id"], d["team_name"], d["bot_token"]),
    )
    await conn.commit()
    logger.debug("Upserted Slack team %s", team.team_id)
