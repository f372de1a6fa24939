"""OVH Diagnostic Bot — Messaging Platforms.

Components:
  - generics: platform-agnostic presentation messages
  - messenger: Facebook Messenger Send API sender
  - slack: per-workspace Slack sender
"""

from src.platforms.generics import (
    MAX_BUTTONS,
    Button,
    ButtonsListMessage,
    ButtonType,
    PresentationMessage,
    TextMessage,
    create_postback_list,
)
from src.platforms.messenger import MessengerPlatform
from src.platforms.slack import SlackPlatform, SlackTeamSender

__all__ = [
    "MAX_BUTTONS",
    "Button",
    "ButtonsListMessage",
    "ButtonType",
    "MessengerPlatform",
    "PresentationMessage",
    "SlackPlatform",
    "SlackTeamSender",
    "TextMessage",
    "create_postback_list",
]
