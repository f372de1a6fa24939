"""OVH Diagnostic Bot — Postback Commands.

Button payloads are decoded once into command objects, then routed to
the probe + formatter pair that answers them:

  TELEPHONY_SELECTED_<account>  → telephony diagnostic
  MORE_TELEPHONY_<offset>       → next page of telephony accounts
  XDSL_SELECTED_<service>       → xDSL line diagnostic
  XDSL_DIAG_<service>           → last advanced xDSL diagnostic
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from src.diagnostics.formatters import (
    check_xdsl_diag,
    check_xdsl_diag_advanced,
    telephony_diag,
)
from src.diagnostics.probes import (
    fetch_telephony_account,
    fetch_telephony_buttons,
    fetch_xdsl_diagnostic,
    fetch_xdsl_line,
)
from src.i18n.translator import translate
from src.ovh.client import OvhClient, OvhClientFactory
from src.platforms.generics import (
    MAX_BUTTONS,
    PresentationMessage,
    TextMessage,
    create_postback_list,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

MORE_TELEPHONY_PREFIX = "MORE_TELEPHONY"


# ── Commands ──────────────────────────────────────────────


@dataclass(frozen=True)
class TelephonySelected:
    account: str


@dataclass(frozen=True)
class MoreTelephony:
    offset: int


@dataclass(frozen=True)
class XdslSelected:
    service: str


@dataclass(frozen=True)
class XdslDiag:
    service: str


PostbackCommand = Union[TelephonySelected, MoreTelephony, XdslSelected, XdslDiag]


def parse_postback(payload: str) -> Optional[PostbackCommand]:
    """Decode a button payload.

    Returns:
        The command, or None if the payload is not one this bot handles.
    """
    if not payload:
        return None

    if payload.startswith("TELEPHONY_SELECTED_"):
        account = payload[len("TELEPHONY_SELECTED_"):]
        return TelephonySelected(account) if account else None

    if payload.startswith(MORE_TELEPHONY_PREFIX + "_"):
        raw = payload[len(MORE_TELEPHONY_PREFIX) + 1:]
        if not raw.isdigit():
            return None
        return MoreTelephony(int(raw))

    if payload.startswith("XDSL_SELECTED_"):
        service = payload[len("XDSL_SELECTED_"):]
        return XdslSelected(service) if service else None

    if payload.startswith("XDSL_DIAG_"):
        service = payload[len("XDSL_DIAG_"):]
        return XdslDiag(service) if service else None

    return None


@dataclass
class PostbackResult:
    """Messages answering a postback.

    Attributes:
        responses: Messages to send back, in order.
        feedback: Whether the platform should ask for feedback afterwards.
    """

    responses: list[PresentationMessage] = field(default_factory=list)
    feedback: bool = False


# ── Router ────────────────────────────────────────────────


class PostbackRouter:
    """Runs postback commands on behalf of a user.

    Attributes:
        client_factory: Builds the user's OVH API client.
    """

    def __init__(self, client_factory: OvhClientFactory) -> None:
        self.client_factory = client_factory

    async def handle(
        self,
        sender_id: str,
        payload: str,
        locale: str,
    ) -> Optional[PostbackResult]:
        """Decode and run one postback.

        Handler errors are logged and answered with a generic message.

        Returns:
            The result, or None if the payload is not recognised.
        """
        command = parse_postback(payload)
        if command is None:
            logger.debug("Ignoring unknown postback '%s' from %s", payload, sender_id)
            return None

        try:
            async with await self.client_factory.for_user(sender_id) as client:
                return await self.run(client, command, locale)
        except Exception:
            logger.exception("Postback %s failed for %s", payload, sender_id)
            return PostbackResult([TextMessage(translate("somethingWrong", locale))])

    async def run(
        self,
        client: OvhClient,
        command: PostbackCommand,
        locale: str,
    ) -> PostbackResult:
        match command:
            case TelephonySelected(account=account):
                info = await fetch_telephony_account(client, account)
                messages = telephony_diag(
                    info.billing, info.portability, info.service_infos, locale,
                )
                return PostbackResult(messages, feedback=True)

            case MoreTelephony(offset=offset):
                return PostbackResult(await self._telephony_page(client, offset, locale))

            case XdslSelected(service=service):
                line = await fetch_xdsl_line(client, service)
                messages = check_xdsl_diag(
                    line["offer"],
                    line["service_infos"],
                    line["order_follow_up"],
                    line["incident"],
                    line["diag"],
                    locale,
                )
                return PostbackResult(messages, feedback=True)

            case XdslDiag(service=service):
                diag = await fetch_xdsl_diagnostic(client, service)
                if diag is None:
                    return PostbackResult([TextMessage(translate("xdsl-noDiag", locale))])
                return PostbackResult(check_xdsl_diag_advanced(diag, locale), feedback=True)

        raise ValueError(f"Unhandled postback command: {command!r}")

    async def _telephony_page(
        self,
        client: OvhClient,
        offset: int,
        locale: str,
    ) -> list[PresentationMessage]:
        buttons = await fetch_telephony_buttons(client)
        if not buttons:
            return [TextMessage(translate("telephonyNoAccount", locale))]

        page = 1 + offset // MAX_BUTTONS
        pages = math.ceil(len(buttons) / MAX_BUTTONS)
        return [
            create_postback_list(
                translate("telephonySelectAccount", locale, page, pages),
                buttons,
                MORE_TELEPHONY_PREFIX,
                offset,
                MAX_BUTTONS,
                locale,
            )
        ]
