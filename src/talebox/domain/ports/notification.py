"""Notification provider interfaces for the notification service.

Hey future me - this is the PORT (interface) for notification providers!
Each provider implements this interface. The NotificationService uses
these providers to deliver notifications through different channels.

Architecture:
- NotificationService (Application Layer) → INotificationProvider (Port)
- ToastNotificationProvider → Implements INotificationProvider

In Talebox notifications are non-blocking toasts: "Using Demo Audio",
"Permission Required" and friends. They NEVER block or fail playback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Types of notifications that can be sent.

    Hey future me - add new types here when you add new notification events!
    """

    DEMO_AUDIO = "demo_audio"
    PLAYER_NOT_READY = "player_not_ready"
    PERMISSION_REQUIRED = "permission_required"
    FORMAT_UNSUPPORTED = "format_unsupported"
    PLAYBACK_FAILED = "playback_failed"
    LIBRARY_UPDATED = "library_updated"
    LIBRARY_ERROR = "library_error"
    CUSTOM = "custom"


class NotificationPriority(str, Enum):
    """Priority levels for notifications.

    Toast providers map these to styles:
    - LOW: info
    - NORMAL: success/neutral
    - HIGH: warning
    - CRITICAL: error
    """

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class Notification:
    """Notification data object for passing to providers.

    Example:
        notif = Notification(
            type=NotificationType.DEMO_AUDIO,
            title="Using Demo Audio",
            message="The book's audio is unavailable, playing demo audio instead",
            priority=NotificationPriority.LOW,
            data={"book_id": "b-1"},
        )
    """

    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None
    user_id: str | None = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(UTC)


@dataclass
class NotificationResult:
    """Result of sending a notification."""

    success: bool
    provider_name: str
    notification_type: NotificationType
    error: str | None = None
    external_id: str | None = None


class INotificationProvider(ABC):
    """Interface for notification providers.

    Each provider must:
    1. Have a unique name
    2. Declare which notification types it supports
    3. Implement send() to actually deliver the notification
    4. Implement is_configured() to report whether it's usable
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this provider (e.g., 'toast')."""
        pass

    @property
    @abstractmethod
    def supported_types(self) -> list[NotificationType]:
        """List of notification types this provider can handle.

        Return empty list to support ALL types.
        """
        pass

    @abstractmethod
    async def send(self, notification: Notification) -> NotificationResult:
        """Send a notification through this provider."""
        pass

    @abstractmethod
    async def is_configured(self) -> bool:
        """Check if this provider is usable."""
        pass

    def supports(self, notification_type: NotificationType) -> bool:
        """Check if this provider supports a notification type."""
        supported = self.supported_types
        return len(supported) == 0 or notification_type in supported


__all__ = [
    "NotificationType",
    "NotificationPriority",
    "Notification",
    "NotificationResult",
    "INotificationProvider",
]
