from __future__ import annotations

import pytest

from src import main as bot_main
from src.config import AppConfig, MessengerConfig, OvhConfig, SchedulerConfig, SlackConfig
from src.database import queries
from src.database.models import PLATFORM_MESSENGER, User
from src.main import DiagnosticBot
from src.notifier.dispatcher import NotificationDispatcher
from src.ovh.errors import OvhApiError
from src.platforms.generics import TextMessage
from tests.fakes import FakeClientFactory, FakeOvhClient, RecordingSender, StaticPlatform


def _config(db_path: str) -> AppConfig:
    return AppConfig(
        ovh=OvhConfig("ovh-eu", "ak", "as"),
        messenger=MessengerConfig("token"),
        slack=SlackConfig(),
        scheduler=SchedulerConfig(),
        database_path=db_path,
        log_level="INFO",
    )


async def _bot(db, clients, sender) -> DiagnosticBot:
    for sender_id in ("psid-1", "psid-2", "psid-3"):
        await queries.upsert_user(db, User(
            sender_id, PLATFORM_MESSENGER, consumer_key="ck", updates=True, expires=True,
            expires_period=15,
        ))
    return DiagnosticBot(
        config=_config(str(db.db_path)),
        db=db,
        client_factory=FakeClientFactory(clients),
        dispatcher=NotificationDispatcher({PLATFORM_MESSENGER: StaticPlatform(sender)}),
    )


@pytest.mark.asyncio
async def test_failing_user_does_not_stop_the_others(db, monkeypatch) -> None:
    seen_locales = []

    async def status(client, locale, probe_timeout=10.0):
        seen_locales.append(locale)
        return [TextMessage(f"status for {locale}")]

    monkeypatch.setattr(bot_main, "get_services_status", status)
    sender = RecordingSender()
    bot = await _bot(db, {
        "psid-1": FakeOvhClient({"/me": {"language": "en_GB"}}),
        "psid-2": FakeOvhClient({"/me": OvhApiError(500, "boom", "/me")}),
        "psid-3": FakeOvhClient({"/me": {}}),
    }, sender)

    stats = await bot.run_status_update()

    assert stats["users"] == 3
    assert stats["errors"] == 1
    assert stats["delivered"] == 2
    assert stats["duration"] >= 0
    assert sorted(recipient for recipient, _ in sender.sent) == ["psid-1", "psid-3"]
    assert sorted(seen_locales) == ["en_GB", "fr_FR"]


@pytest.mark.asyncio
async def test_expires_update_uses_user_period(db, monkeypatch) -> None:
    periods = []

    async def expires(client, locale, expires_period, now=None):
        periods.append(expires_period)
        return []

    monkeypatch.setattr(bot_main, "get_services_expires", expires)
    sender = RecordingSender()
    clients = {sid: FakeOvhClient({"/me": {"language": "fr_FR"}}) for sid in ("psid-1", "psid-2", "psid-3")}
    bot = await _bot(db, clients, sender)

    stats = await bot.run_expires_update()

    assert periods == [15, 15, 15]
    assert stats == {**stats, "users": 3, "delivered": 0, "errors": 0}
    assert sender.sent == []
    assert all(client.closed for client in clients.values())


@pytest.mark.asyncio
async def test_only_subscribed_users_are_scanned(db, monkeypatch) -> None:
    async def status(client, locale, probe_timeout=10.0):
        return [TextMessage("ok")]

    monkeypatch.setattr(bot_main, "get_services_status", status)
    sender = RecordingSender()
    clients = {sid: FakeOvhClient({"/me": {}}) for sid in ("psid-1", "psid-2", "psid-3")}
    bot = await _bot(db, clients, sender)
    await queries.set_user_flags(db, "psid-2", updates=False)

    stats = await bot.run_status_update()

    assert stats["users"] == 2
    assert "psid-2" not in [recipient for recipient, _ in sender.sent]
