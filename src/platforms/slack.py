"""OVH Diagnostic Bot — Slack Sender.

Each Slack workspace has its own bot token, stored in the slack_teams
table. SlackPlatform resolves a user's workspace and returns a sender
bound to that workspace's AsyncWebClient.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from src.config import SlackConfig
from src.database.db import Database
from src.database import queries
from src.database.models import PLATFORM_SLACK, User
from src.platforms.generics import (
    ButtonsListMessage,
    ButtonType,
    PresentationMessage,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

WebClientFactory = Callable[[str], AsyncWebClient]


def build_blocks(message: ButtonsListMessage) -> list[dict[str, Any]]:
    """Section + actions blocks for a message with buttons.

    Slack buttons only open http(s) links, so other URLs (tel:) are
    written out in the section text instead.
    """
    text_lines = [message.text]
    elements: list[dict[str, Any]] = []
    for button in message.buttons:
        label = {"type": "plain_text", "text": button.title[:75]}
        if button.type == ButtonType.POSTBACK:
            elements.append({
                "type": "button",
                "text": label,
                "value": button.value,
                "action_id": button.value[:255],
            })
        elif button.value.startswith(("http://", "https://")):
            elements.append({"type": "button", "text": label, "url": button.value})
        else:
            text_lines.append(f"{button.title}: {button.value.split(':', 1)[-1]}")

    blocks: list[dict[str, Any]] = [
        {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(text_lines)}},
    ]
    if elements:
        blocks.append({"type": "actions", "elements": elements})
    return blocks


class SlackTeamSender:
    """Sends messages inside one Slack workspace."""

    def __init__(self, team_id: str, client: AsyncWebClient) -> None:
        self.team_id = team_id
        self.client = client

    async def send(self, recipient: str, message: PresentationMessage) -> bool:
        try:
            if isinstance(message, ButtonsListMessage):
                await self.client.chat_postMessage(
                    channel=recipient,
                    text=message.text,
                    blocks=build_blocks(message),
                )
            else:
                await self.client.chat_postMessage(channel=recipient, text=message.text)
            return True
        except SlackApiError:
            logger.warning(
                "Failed to post Slack message to %s (team %s)",
                recipient, self.team_id, exc_info=True,
            )
            return False


class SlackPlatform:
    """Resolves Slack workspaces from the team store."""

    name = PLATFORM_SLACK

    def __init__(
        self,
        db: Database,
        config: SlackConfig,
        client_factory: Optional[WebClientFactory] = None,
    ) -> None:
        self._db = db
        self.config = config
        self._client_factory = client_factory or (
            lambda token: AsyncWebClient(token=token, timeout=config.timeout_seconds)
        )

    async def get_api_for_team(self, team_id: str) -> Optional[SlackTeamSender]:
        """Return a sender for the workspace, None if it is not installed."""
        team = await queries.get_slack_team(self._db, team_id)
        if team is None:
            logger.warning("Slack team %s is not installed", team_id)
            return None
        return SlackTeamSender(team.team_id, self._client_factory(team.bot_token))

    async def sender_for(self, user: User) -> Optional[SlackTeamSender]:
        if not user.team_id:
            logger.warning("Slack user %s has no team", user.sender_id)
            return None
        return await self.get_api_for_team(user.team_id)
