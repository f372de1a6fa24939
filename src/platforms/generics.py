"""OVH Diagnostic Bot — Platform-agnostic Presentation Messages.

Immutable message types produced by the formatters and rendered by each
platform sender. Strings are already translated when a message is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from src.i18n import translate

MAX_BUTTONS = 4


class ButtonType:
    """Kinds of button a ButtonsListMessage can carry."""

    POSTBACK = "postback"
    WEB_URL = "web_url"


@dataclass(frozen=True)
class TextMessage:
    """A plain text message."""

    text: str


@dataclass(frozen=True)
class Button:
    """An action button.

    Attributes:
        type: ButtonType.POSTBACK or ButtonType.WEB_URL.
        value: Postback payload or URL.
        title: Label shown to the user.
    """

    type: str
    value: str
    title: str


@dataclass(frozen=True)
class ButtonsListMessage:
    """A text followed by a list of buttons."""

    text: str
    buttons: tuple[Button, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "buttons", tuple(self.buttons))


PresentationMessage = Union[TextMessage, ButtonsListMessage]


def create_postback_list(
    text: str,
    buttons: Sequence[Button],
    more_prefix: str,
    offset: int,
    limit: int,
    locale: str,
) -> ButtonsListMessage:
    """Build one page of a paginated button list.

    Keeps ``buttons[offset:offset + limit]`` and, when buttons remain after
    that page, appends a postback button ``<more_prefix>_<next offset>``.

    Args:
        text: Message text above the buttons.
        buttons: The complete, unpaginated button list.
        more_prefix: Postback prefix of the "see more" command.
        offset: Index of the first button of this page.
        limit: Page size.
        locale: Locale of the "see more" label.

    Returns:
        The page as a ButtonsListMessage.
    """
    offset = max(0, offset)
    page = list(buttons[offset:offset + limit])
    next_offset = offset + limit
    if next_offset < len(buttons):
        page.append(
            Button(ButtonType.POSTBACK, f"{more_prefix}_{next_offset}", translate("seeMore", locale))
        )
    return ButtonsListMessage(text, page)
