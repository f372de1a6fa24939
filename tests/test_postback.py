from __future__ import annotations

import pytest

from src.bots.postback import (
    MoreTelephony,
    PostbackRouter,
    TelephonySelected,
    XdslDiag,
    XdslSelected,
    parse_postback,
)
from src.i18n import translate
from src.ovh.errors import OvhApiError
from src.platforms.generics import ButtonsListMessage, TextMessage
from tests.fakes import FakeClientFactory, FakeOvhClient

LOCALE = "en_GB"


@pytest.mark.parametrize(
    ("payload", "command"),
    [
        ("TELEPHONY_SELECTED_ab12345-ovh-1", TelephonySelected("ab12345-ovh-1")),
        ("MORE_TELEPHONY_4", MoreTelephony(4)),
        ("XDSL_SELECTED_xdsl-ab1-1", XdslSelected("xdsl-ab1-1")),
        ("XDSL_DIAG_xdsl-ab1-1", XdslDiag("xdsl-ab1-1")),
        ("MORE_TELEPHONY_abc", None),
        ("TELEPHONY_SELECTED_", None),
        ("GET_STARTED", None),
        ("", None),
    ],
)
def test_parse_postback(payload, command) -> None:
    assert parse_postback(payload) == command


def _telephony_routes(count: int) -> dict:
    accounts = [f"acc-{i}" for i in range(count)]
    routes: dict = {"/telephony": accounts}
    for account in accounts:
        routes[f"/telephony/{account}"] = {"billingAccount": account, "description": account.upper()}
    return routes


def _router(routes) -> tuple[PostbackRouter, FakeOvhClient]:
    client = FakeOvhClient(routes)
    return PostbackRouter(FakeClientFactory({"psid": client})), client


@pytest.mark.asyncio
async def test_more_telephony_first_page() -> None:
    router, client = _router(_telephony_routes(6))

    result = await router.handle("psid", "MORE_TELEPHONY_0", LOCALE)

    (message,) = result.responses
    assert isinstance(message, ButtonsListMessage)
    assert message.text == translate("telephonySelectAccount", LOCALE, 1, 2)
    assert [b.value for b in message.buttons] == [
        "TELEPHONY_SELECTED_acc-0",
        "TELEPHONY_SELECTED_acc-1",
        "TELEPHONY_SELECTED_acc-2",
        "TELEPHONY_SELECTED_acc-3",
        "MORE_TELEPHONY_4",
    ]
    assert result.feedback is False
    assert client.closed


@pytest.mark.asyncio
async def test_more_telephony_last_page_has_no_more_button() -> None:
    router, _ = _router(_telephony_routes(6))

    result = await router.handle("psid", "MORE_TELEPHONY_4", LOCALE)

    (message,) = result.responses
    assert message.text == translate("telephonySelectAccount", LOCALE, 2, 2)
    assert [b.value for b in message.buttons] == [
        "TELEPHONY_SELECTED_acc-4",
        "TELEPHONY_SELECTED_acc-5",
    ]


@pytest.mark.asyncio
async def test_more_telephony_without_accounts() -> None:
    router, _ = _router({"/telephony": []})
    result = await router.handle("psid", "MORE_TELEPHONY_0", LOCALE)
    assert result.responses == [TextMessage(translate("telephonyNoAccount", LOCALE))]


@pytest.mark.asyncio
async def test_telephony_selected_runs_diagnostic() -> None:
    router, _ = _router({
        "/telephony/acc": {"billingAccount": "acc", "description": "Office", "status": "enabled"},
        "/telephony/acc/portability": [],
        "/telephony/acc/serviceInfos": {"status": "ok"},
    })

    result = await router.handle("psid", "TELEPHONY_SELECTED_acc", LOCALE)

    assert result.feedback is True
    assert "Office" in result.responses[0].text
    assert result.responses[1] == TextMessage(translate("telephony-noPortability", LOCALE))


@pytest.mark.asyncio
async def test_telephony_selected_failure_renders_generic_message() -> None:
    router, _ = _router({
        "/telephony/acc": {"billingAccount": "acc"},
        "/telephony/acc/portability": OvhApiError(500, "boom", "/telephony/acc/portability"),
        "/telephony/acc/serviceInfos": {"status": "ok"},
    })

    result = await router.handle("psid", "TELEPHONY_SELECTED_acc", LOCALE)

    assert result.responses == [TextMessage(translate("somethingWrong", LOCALE))]
    assert result.feedback is False


@pytest.mark.asyncio
async def test_unlinked_user_renders_generic_message() -> None:
    router = PostbackRouter(FakeClientFactory({"psid": OvhApiError(403, "not linked", "/me")}))
    result = await router.handle("psid", "MORE_TELEPHONY_0", LOCALE)
    assert result.responses == [TextMessage(translate("somethingWrong", LOCALE))]


@pytest.mark.asyncio
async def test_unknown_payload_is_ignored() -> None:
    router, client = _router({})
    assert await router.handle("psid", "GET_STARTED", LOCALE) is None
    assert client.calls == []


@pytest.mark.asyncio
async def test_xdsl_selected_all_ok() -> None:
    router, _ = _router({
        "/xdsl/line": {"status": "ok", "accessName": "line"},
        "/xdsl/line/serviceInfos": {"status": "ok"},
        "/xdsl/line/orderFollowup": [{"name": "accessIsOperational", "status": "done"}],
    })

    result = await router.handle("psid", "XDSL_SELECTED_line", LOCALE)

    assert result.feedback is True
    assert result.responses[0] == TextMessage(translate("xdsl-resultAllOk", LOCALE))
    assert result.responses[2].buttons[0].value == "XDSL_DIAG_line"


@pytest.mark.asyncio
async def test_xdsl_diag_without_previous_diagnostic() -> None:
    router, _ = _router({})
    result = await router.handle("psid", "XDSL_DIAG_line", LOCALE)
    assert result.responses == [TextMessage(translate("xdsl-noDiag", LOCALE))]


@pytest.mark.asyncio
async def test_xdsl_diag_formats_last_diagnostic() -> None:
    router, _ = _router({"/xdsl/line/diagnostic": {
        "diagnosticTime": "2017-04-20T12:46:30+00:00",
        "isModemConnected": True,
        "lineDetails": [{"number": 1, "sync": True}],
        "ping": True,
    }})

    result = await router.handle("psid", "XDSL_DIAG_line", LOCALE)

    assert result.feedback is True
    assert len(result.responses) == 7
    assert result.responses[-2] == TextMessage(translate("xdsl-resultOk", LOCALE))
