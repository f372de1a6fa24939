"""OVH Diagnostic Bot — Facebook Messenger Sender.

Delivers presentation messages through the Messenger Send API:
  - TextMessage → text message, split at line boundaries above 640 chars
  - ButtonsListMessage → button template (postback, web_url, phone_number)
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from src.config import MessengerConfig
from src.database.models import PLATFORM_MESSENGER, User
from src.platforms.base import split_text
from src.platforms.generics import (
    Button,
    ButtonsListMessage,
    ButtonType,
    PresentationMessage,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

_MAX_TEXT_LEN = 640
_MAX_TITLE_LEN = 20


def _render_button(button: Button) -> dict[str, Any]:
    title = button.title[:_MAX_TITLE_LEN]
    if button.type == ButtonType.POSTBACK:
        return {"type": "postback", "title": title, "payload": button.value}
    if button.value.startswith("tel:"):
        return {"type": "phone_number", "title": title, "payload": button.value[len("tel:"):]}
    return {"type": "web_url", "title": title, "url": button.value}


def render_message(message: PresentationMessage) -> list[dict[str, Any]]:
    """Convert a presentation message into Send API message payloads."""
    if isinstance(message, ButtonsListMessage):
        return [{
            "attachment": {
                "type": "template",
                "payload": {
                    "template_type": "button",
                    "text": message.text[:_MAX_TEXT_LEN],
                    "buttons": [_render_button(b) for b in message.buttons],
                },
            },
        }]
    return [{"text": chunk} for chunk in split_text(message.text, _MAX_TEXT_LEN)]


class MessengerPlatform:
    """Messenger Send API client; one page token reaches every user.

    Attributes:
        config: MessengerConfig with the page access token.
    """

    name = PLATFORM_MESSENGER

    def __init__(
        self,
        config: MessengerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def sender_for(self, user: User) -> "MessengerPlatform":
        return self

    async def send(self, recipient: str, message: PresentationMessage) -> bool:
        """Send one message, as several Send API calls if it must be split.

        Returns:
            True if every part was accepted, False on the first failure.
        """
        client = await self._get_client()
        for payload in render_message(message):
            try:
                resp = await client.post(
                    self.config.graph_url,
                    params={"access_token": self.config.page_access_token},
                    json={
                        "recipient": {"id": recipient},
                        "messaging_type": "UPDATE",
                        "message": payload,
                    },
                )
            except httpx.HTTPError as e:
                logger.error("Messenger network error for %s: %s", recipient, e)
                return False

            if resp.status_code >= 400:
                logger.error(
                    "Messenger rejected message for %s (%d): %s",
                    recipient, resp.status_code, resp.text[:200],
                )
                return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
