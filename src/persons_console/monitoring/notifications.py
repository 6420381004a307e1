"""
Transient notifications (toasts) raised by the list controller.

The presentation layer drains them and renders each one once.
"""

from collections import deque
from datetime import datetime
from datetime import timezone
from typing import Deque
from typing import List

from loguru import logger

from persons_console.schemas.enums import NotificationLevel
from persons_console.schemas.schemas import Notification

# Oldest notifications are dropped once this many are pending
MAX_PENDING_NOTIFICATIONS = 50


class NotificationCenter:
    """
    In-memory queue of transient notifications.

    Every notification is also written to the log, so operator-visible
    messages and server logs stay correlated.
    """

    def __init__(self, max_pending: int = MAX_PENDING_NOTIFICATIONS):
        self._pending: Deque[Notification] = deque(maxlen=max_pending)

    def success(self, message: str, **context) -> Notification:
        """Queue a success notification."""
        logger.success(message, notification=True, **context)
        return self._push(NotificationLevel.SUCCESS, message)

    def error(self, message: str, **context) -> Notification:
        """Queue an error notification."""
        logger.warning(message, notification=True, **context)
        return self._push(NotificationLevel.ERROR, message)

    def info(self, message: str, **context) -> Notification:
        """Queue an informational notification."""
        logger.info(message, notification=True, **context)
        return self._push(NotificationLevel.INFO, message)

    def pending(self) -> List[Notification]:
        """Return pending notifications without consuming them."""
        return list(self._pending)

    def drain(self) -> List[Notification]:
        """Return and clear pending notifications."""
        drained = list(self._pending)
        self._pending.clear()
        return drained

    def _push(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message, created_at=datetime.now(timezone.utc))
        self._pending.append(notification)
        return notification
