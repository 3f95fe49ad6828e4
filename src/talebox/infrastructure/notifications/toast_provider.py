"""In-memory toast notification provider.

Hey future me - toasts are the non-blocking popups of the player ("Using Demo Audio",
"Permission Required", ...). They're ephemeral: we keep a bounded queue in memory and the
UI drains it (GET /api/notifications). Nothing is persisted - a toast nobody saw within
max_size newer toasts is simply gone.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from talebox.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationPriority,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)


# Priority → toast style the UI renders
_STYLES: dict[NotificationPriority, str] = {
    NotificationPriority.LOW: "info",
    NotificationPriority.NORMAL: "success",
    NotificationPriority.HIGH: "warning",
    NotificationPriority.CRITICAL: "error",
}


@dataclass(frozen=True)
class Toast:
    """One toast as the UI sees it."""

    id: str
    type: NotificationType
    style: str
    title: str
    message: str
    created_at: datetime
    user_id: str | None = None


class ToastNotificationProvider(INotificationProvider):
    """Keeps the most recent toasts in a bounded queue."""

    def __init__(self, max_size: int = 50) -> None:
        self._toasts: deque[Toast] = deque(maxlen=max_size)

    @property
    def name(self) -> str:
        return "toast"

    @property
    def supported_types(self) -> list[NotificationType]:
        """Toasts support all notification types."""
        return []

    async def is_configured(self) -> bool:
        return True

    async def send(self, notification: Notification) -> NotificationResult:
        toast = Toast(
            id=str(uuid4()),
            type=notification.type,
            style=_STYLES[notification.priority],
            title=notification.title,
            message=notification.message,
            created_at=notification.timestamp,  # type: ignore[arg-type]
            user_id=notification.user_id,
        )
        self._toasts.append(toast)
        logger.debug("[NOTIFICATION] Toast queued: %s (%s)", toast.title, toast.style)
        return NotificationResult(
            success=True,
            provider_name=self.name,
            notification_type=notification.type,
            external_id=toast.id,
        )

    def peek(self) -> list[Toast]:
        """Current toasts, oldest first, without removing them."""
        return list(self._toasts)

    def drain(self) -> list[Toast]:
        """Return and remove all queued toasts."""
        toasts = list(self._toasts)
        self._toasts.clear()
        return toasts
