"""OVH Diagnostic Bot — Notification Dispatcher.

Routes a user's presentation messages to the platform the user talks
to the bot on. Messages for one user are sent sequentially so the
recipient sees them in order.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from src.database.models import User
from src.platforms.base import Platform
from src.platforms.generics import PresentationMessage
from src.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationDispatcher:
    """Delivers presentation messages through the user's platform.

    Attributes:
        platforms: Platforms keyed by platform id (User.platform).
    """

    def __init__(self, platforms: Mapping[str, Platform]) -> None:
        self.platforms = dict(platforms)

    async def deliver(
        self,
        user: User,
        messages: Sequence[PresentationMessage],
    ) -> int:
        """Send every message to the user, in order.

        Failed deliveries are logged and not retried.

        Args:
            user: Recipient; its platform selects the sender.
            messages: Messages to deliver.

        Returns:
            Number of messages successfully delivered.
        """
        if not messages:
            return 0

        platform = self.platforms.get(user.platform)
        if platform is None:
            logger.warning(
                "No platform '%s' registered for user %s",
                user.platform, user.sender_id,
            )
            return 0

        sender = await platform.sender_for(user)
        if sender is None:
            logger.warning("User %s is unreachable on %s", user.sender_id, user.platform)
            return 0

        delivered = 0
        for message in messages:
            if await sender.send(user.sender_id, message):
                delivered += 1

        if delivered < len(messages):
            logger.error(
                "Delivered %d/%d messages to %s",
                delivered, len(messages), user.sender_id,
            )
        else:
            logger.debug("Delivered %d messages to %s", delivered, user.sender_id)
        return delivered
