"""OVH Diagnostic Bot — Notifier Package.

Components:
  - dispatcher: routes presentation messages to the user's platform
"""

from src.notifier.dispatcher import NotificationDispatcher

__all__ = [
    "NotificationDispatcher",
]
