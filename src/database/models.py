"""OVH Diagnostic Bot — Data Models.

Dataclasses for the entities owned by the user store: chat users with
their notification preferences, and Slack workspaces the bot is
installed in.

Each dataclass includes:
  - to_db_dict(): converts to a dict suitable for SQLite insertion
  - from_db_row(row): classmethod to reconstruct from a DB row dict
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

PLATFORM_SLACK = "slack"
PLATFORM_MESSENGER = "facebook_messenger"


@dataclass
class User:
    """A chat user linked to an OVH account.

    Attributes:
        sender_id: Platform-specific user identifier (PSID or Slack user id).
        platform: Messaging platform ("slack" or "facebook_messenger").
        locale: Preferred locale, e.g. "fr_FR".
        team_id: Slack workspace id, None for Messenger users.
        consumer_key: OVH API consumer key granted by the user.
        updates: Whether the user subscribed to periodic status updates.
        expires: Whether the user subscribed to expiry reminders.
        expires_period: Reminder horizon in days.
    """

    sender_id: str
    platform: str
    locale: str = "fr_FR"
    team_id: Optional[str] = None
    consumer_key: str = ""
    updates: bool = False
    expires: bool = False
    expires_period: int = 30

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for SQLite insertion (bools as int)."""
        return {
            "sender_id": self.sender_id,
            "platform": self.platform,
            "locale": self.locale,
            "team_id": self.team_id,
            "consumer_key": self.consumer_key,
            "updates": int(self.updates),
            "expires": int(self.expires),
            "expires_period": self.expires_period,
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "User":
        """Construct a User from a database row dictionary."""
        return cls(
            sender_id=row["sender_id"],
            platform=row["platform"],
            locale=row.get("locale") or "fr_FR",
            team_id=row.get("team_id"),
            consumer_key=row.get("consumer_key") or "",
            updates=bool(row.get("updates", 0)),
            expires=bool(row.get("expires", 0)),
            expires_period=int(row.get("expires_period", 30)),
        )


@dataclass
class SlackTeam:
    """A Slack workspace and the bot token issued for it."""

    team_id: str
    bot_token: str
    team_name: str = ""

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "bot_token": self.bot_token,
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "SlackTeam":
        return cls(
            team_id=row["team_id"],
            bot_token=row["bot_token"],
            team_name=row.get("team_name") or "",
        )
