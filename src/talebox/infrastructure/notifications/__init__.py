"""Notification provider implementations."""

from talebox.infrastructure.notifications.toast_provider import (
    Toast,
    ToastNotificationProvider,
)

__all__ = ["Toast", "ToastNotificationProvider"]
