"""OVH Diagnostic Bot — Bot Commands.

Components:
  - postback: button payload decoding and command routing
"""

from src.bots.postback import (
    MoreTelephony,
    PostbackCommand,
    PostbackResult,
    PostbackRouter,
    TelephonySelected,
    XdslDiag,
    XdslSelected,
    parse_postback,
)

__all__ = [
    "MoreTelephony",
    "PostbackCommand",
    "PostbackResult",
    "PostbackRouter",
    "TelephonySelected",
    "XdslDiag",
    "XdslSelected",
    "parse_postback",
]
