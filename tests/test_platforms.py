from __future__ import annotations

import json

import httpx
import pytest
from slack_sdk.errors import SlackApiError

from src.config import MessengerConfig, SlackConfig
from src.database import queries
from src.database.models import PLATFORM_SLACK, SlackTeam, User
from src.platforms.base import split_text
from src.platforms.generics import (
    Button,
    ButtonsListMessage,
    ButtonType,
    TextMessage,
    create_postback_list,
)
from src.platforms.messenger import MessengerPlatform, render_message
from src.platforms.slack import SlackPlatform, build_blocks

CALL_SUPPORT = Button(ButtonType.WEB_URL, "tel:1007", "Call support")
LAUNCH = Button(ButtonType.POSTBACK, "XDSL_DIAG_line", "Run diagnostic")


# ── Generic messages ─────────────────────────────────────


def test_postback_list_pages() -> None:
    buttons = [Button(ButtonType.POSTBACK, f"P_{i}", str(i)) for i in range(5)]

    first = create_postback_list("Pick", buttons, "MORE", 0, 4, "en_GB")
    last = create_postback_list("Pick", buttons, "MORE", 4, 4, "en_GB")

    assert [b.value for b in first.buttons] == ["P_0", "P_1", "P_2", "P_3", "MORE_4"]
    assert first.buttons[-1].title == "See more"
    assert [b.value for b in last.buttons] == ["P_4"]


def test_split_text_prefers_line_boundaries() -> None:
    text = "\n".join(["x" * 30] * 5)
    chunks = split_text(text, 70)
    assert len(chunks) == 3
    assert all(len(chunk) <= 70 for chunk in chunks)
    assert "\n".join(chunks) == text


# ── Messenger ────────────────────────────────────────────


def test_messenger_button_template() -> None:
    (payload,) = render_message(ButtonsListMessage("Slamming", [CALL_SUPPORT, LAUNCH]))

    template = payload["attachment"]["payload"]
    assert template["template_type"] == "button"
    assert template["text"] == "Slamming"
    assert template["buttons"] == [
        {"type": "phone_number", "title": "Call support", "payload": "1007"},
        {"type": "postback", "title": "Run diagnostic", "payload": "XDSL_DIAG_line"},
    ]


def test_messenger_long_text_is_split() -> None:
    payloads = render_message(TextMessage("\n".join(["y" * 100] * 10)))
    assert len(payloads) == 2
    assert all(len(p["text"]) <= 640 for p in payloads)


@pytest.mark.asyncio
async def test_messenger_send_posts_to_graph_api() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"recipient_id": "psid", "message_id": "m1"})

    platform = MessengerPlatform(MessengerConfig("page-token"), transport=httpx.MockTransport(handler))
    try:
        assert await platform.send("psid", TextMessage("hello")) is True
    finally:
        await platform.close()

    (request,) = requests
    assert request.url.params["access_token"] == "page-token"
    body = json.loads(request.content)
    assert body["recipient"] == {"id": "psid"}
    assert body["message"] == {"text": "hello"}


@pytest.mark.asyncio
async def test_messenger_rejection_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Invalid OAuth access token."}})

    platform = MessengerPlatform(MessengerConfig("bad"), transport=httpx.MockTransport(handler))
    try:
        assert await platform.send("psid", TextMessage("hello")) is False
    finally:
        await platform.close()


# ── Slack ────────────────────────────────────────────────


class StubWebClient:
    def __init__(self, token: str, fail: bool = False) -> None:
        self.token = token
        self.fail = fail
        self.posts: list[dict] = []

    async def chat_postMessage(self, **kwargs):
        if self.fail:
            raise SlackApiError("channel_not_found", {"ok": False, "error": "channel_not_found"})
        self.posts.append(kwargs)
        return {"ok": True}


def test_slack_blocks_keep_postbacks_and_inline_phone_numbers() -> None:
    blocks = build_blocks(ButtonsListMessage("Slamming", [CALL_SUPPORT, LAUNCH]))

    assert blocks[0]["text"]["text"] == "Slamming\nCall support: 1007"
    (button,) = blocks[1]["elements"]
    assert button["value"] == "XDSL_DIAG_line"
    assert button["action_id"] == "XDSL_DIAG_line"


@pytest.mark.asyncio
async def test_slack_sender_uses_team_token(db) -> None:
    await queries.upsert_slack_team(db, SlackTeam("T1", "xoxb-team-1", "Acme"))
    clients: list[StubWebClient] = []

    def factory(token: str) -> StubWebClient:
        clients.append(StubWebClient(token))
        return clients[-1]

    platform = SlackPlatform(db, SlackConfig(), client_factory=factory)
    sender = await platform.sender_for(User("U1", PLATFORM_SLACK, team_id="T1"))

    assert await sender.send("U1", TextMessage("hello")) is True
    assert await sender.send("U1", ButtonsListMessage("Pick", [LAUNCH])) is True
    assert clients[0].token == "xoxb-team-1"
    assert clients[0].posts[0] == {"channel": "U1", "text": "hello"}
    assert clients[0].posts[1]["blocks"][1]["type"] == "actions"


@pytest.mark.asyncio
async def test_slack_missing_team(db) -> None:
    platform = SlackPlatform(db, SlackConfig(), client_factory=StubWebClient)
    assert await platform.get_api_for_team("T404") is None
    assert await platform.sender_for(User("U1", PLATFORM_SLACK)) is None


@pytest.mark.asyncio
async def test_slack_api_error_is_reported(db) -> None:
    await queries.upsert_slack_team(db, SlackTeam("T1", "xoxb"))
    platform = SlackPlatform(db, SlackConfig(), client_factory=lambda token: StubWebClient(token, fail=True))
    sender = await platform.get_api_for_team("T1")
    assert await sender.send("U1", TextMessage("hello")) is False
