"""OVH Diagnostic Bot — Platform Interfaces.

A Platform resolves the sender able to reach a given user; a sender
delivers one presentation message to one recipient.
"""

from __future__ import annotations

from typing import Optional, Protocol

from src.database.models import User
from src.platforms.generics import PresentationMessage


class PlatformSender(Protocol):
    """Delivers presentation messages to recipients of one platform."""

    async def send(self, recipient: str, message: PresentationMessage) -> bool:
        """Send *message* to *recipient*; return True once delivered."""
        ...


class Platform(Protocol):
    """A messaging platform the bot is reachable on."""

    name: str

    async def sender_for(self, user: User) -> Optional[PlatformSender]:
        """Return the sender for *user*, or None if it cannot be reached."""
        ...


def split_text(text: str, max_len: int) -> list[str]:
    """Split text at paragraph or line boundaries into chunks of max_len.

    Tries double newlines first, then single newlines, then a hard cut.
    """
    if len(text) <= max_len:
        return [text]

    chunks: list[str] = []
    remaining = text

    while len(remaining) > max_len:
        cut_point = remaining.rfind("\n\n", 0, max_len)
        if cut_point <= 0:
            cut_point = remaining.rfind("\n", 0, max_len)
        if cut_point <= 0:
            cut_point = max_len

        chunks.append(remaining[:cut_point].rstrip())
        remaining = remaining[cut_point:].lstrip("\n")

    if remaining.strip():
        chunks.append(remaining.strip())

    return chunks
