from __future__ import annotations

import pytest

from src.database.models import PLATFORM_MESSENGER, PLATFORM_SLACK, User
from src.notifier.dispatcher import NotificationDispatcher
from src.platforms.generics import TextMessage
from tests.fakes import RecordingSender, StaticPlatform

MESSAGES = [TextMessage("one"), TextMessage("two"), TextMessage("three")]


@pytest.mark.asyncio
async def test_messages_delivered_in_order_to_the_users_platform() -> None:
    messenger = RecordingSender()
    slack = RecordingSender()
    dispatcher = NotificationDispatcher({
        PLATFORM_MESSENGER: StaticPlatform(messenger),
        PLATFORM_SLACK: StaticPlatform(slack),
    })

    delivered = await dispatcher.deliver(User("U1", PLATFORM_SLACK, team_id="T1"), MESSAGES)

    assert delivered == 3
    assert slack.sent == [("U1", m) for m in MESSAGES]
    assert messenger.sent == []


@pytest.mark.asyncio
async def test_unknown_platform_is_a_no_op() -> None:
    sender = RecordingSender()
    dispatcher = NotificationDispatcher({PLATFORM_MESSENGER: StaticPlatform(sender)})

    assert await dispatcher.deliver(User("U1", "telegram"), MESSAGES) == 0
    assert sender.sent == []


@pytest.mark.asyncio
async def test_unreachable_user_is_a_no_op() -> None:
    dispatcher = NotificationDispatcher({PLATFORM_SLACK: StaticPlatform(None)})
    assert await dispatcher.deliver(User("U1", PLATFORM_SLACK), MESSAGES) == 0


@pytest.mark.asyncio
async def test_failed_message_does_not_stop_the_rest() -> None:
    sender = RecordingSender(fail_on={0})
    dispatcher = NotificationDispatcher({PLATFORM_MESSENGER: StaticPlatform(sender)})

    assert await dispatcher.deliver(User("psid", PLATFORM_MESSENGER), MESSAGES) == 2
    assert len(sender.sent) == 3


@pytest.mark.asyncio
async def test_nothing_to_send() -> None:
    sender = RecordingSender()
    dispatcher = NotificationDispatcher({PLATFORM_MESSENGER: StaticPlatform(sender)})
    assert await dispatcher.deliver(User("psid", PLATFORM_MESSENGER), []) == 0
