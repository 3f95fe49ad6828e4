"""Notification service for sending notifications through multiple providers.

Hey future me - this is the MAIN ENTRY POINT for toasts and friends!
Playback code never talks to providers directly; it calls the convenience
methods here (notify_demo_audio, notify_permission_required, ...).

The service:
1. Builds a Notification object
2. Sends it to ALL providers that support the type (parallel)
3. Logs results and returns success status

It NEVER raises - a broken provider must not break playback.
"""

import asyncio
import logging
from typing import Any

from talebox.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationPriority,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for sending notifications through multiple providers.

    Example:
        toasts = ToastNotificationProvider()
        service = NotificationService([toasts])
        await service.notify_demo_audio(book_id="b-1")
        toasts.drain()  # → [Toast(title="Using Demo Audio", ...)]
    """

    def __init__(self, providers: list[INotificationProvider] | None = None) -> None:
        """Initialize notification service.

        Args:
            providers: Providers to deliver through. Empty = logging-only mode.
        """
        self._providers: list[INotificationProvider] = list(providers or [])

    def add_provider(self, provider: INotificationProvider) -> None:
        self._providers.append(provider)

    async def send_notification(
        self,
        notification_type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        data: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> bool:
        """Send notification to all configured providers.

        Returns:
            True if at least one provider succeeded (or logging-only mode)
        """
        notification = Notification(
            type=notification_type,
            title=title,
            message=message,
            priority=priority,
            data=data or {},
            user_id=user_id,
        )

        logger.info(f"[NOTIFICATION] {notification_type.value}: {title} - {message[:100]}")

        providers = await self._configured_providers()
        if not providers:
            logger.debug("[NOTIFICATION] No providers configured, logged only")
            return True

        results = await self._send_to_providers(notification, providers)

        successes = sum(1 for r in results if r.success)
        failures = len(results) - successes
        if failures > 0:
            failed_providers = [r.provider_name for r in results if not r.success]
            logger.warning(
                f"[NOTIFICATION] {successes}/{len(results)} providers succeeded, "
                f"failed: {failed_providers}"
            )

        return successes > 0

    async def _configured_providers(self) -> list[INotificationProvider]:
        configured: list[INotificationProvider] = []
        for provider in self._providers:
            try:
                if await provider.is_configured():
                    configured.append(provider)
            except Exception as e:
                logger.warning(f"[NOTIFICATION] Failed to check provider {provider.name}: {e}")
        return configured

    async def _send_to_providers(
        self, notification: Notification, providers: list[INotificationProvider]
    ) -> list[NotificationResult]:
        """Send notification to multiple providers in parallel."""
        targets = [p for p in providers if p.supports(notification.type)]
        if not targets:
            return []

        return list(
            await asyncio.gather(
                *(self._send_to_provider(provider, notification) for provider in targets)
            )
        )

    async def _send_to_provider(
        self, provider: INotificationProvider, notification: Notification
    ) -> NotificationResult:
        """Send to a single provider; failures become unsuccessful results."""
        try:
            return await provider.send(notification)
        except Exception as e:
            logger.error(f"[NOTIFICATION] Provider {provider.name} error: {e}")
            return NotificationResult(
                success=False,
                provider_name=provider.name,
                notification_type=notification.type,
                error=str(e),
            )

    # =========================================================================
    # CONVENIENCE METHODS
    # Hey future me - the titles here are what users SEE. Keep them short.
    # =========================================================================

    async def notify_demo_audio(self, book_id: str, user_id: str | None = None) -> bool:
        return await self.send_notification(
            notification_type=NotificationType.DEMO_AUDIO,
            title="Using Demo Audio",
            message="This book's audio is unavailable right now, playing demo audio instead.",
            priority=NotificationPriority.LOW,
            data={"book_id": book_id},
            user_id=user_id,
        )

    async def notify_player_not_ready(self, user_id: str | None = None) -> bool:
        return await self.send_notification(
            notification_type=NotificationType.PLAYER_NOT_READY,
            title="Player Not Ready",
            message="The audio player is still loading. Please try again in a moment.",
            priority=NotificationPriority.HIGH,
            user_id=user_id,
        )

    async def notify_permission_required(self, user_id: str | None = None) -> bool:
        return await self.send_notification(
            notification_type=NotificationType.PERMISSION_REQUIRED,
            title="Permission Required",
            message="Tap play again to allow audio playback on this device.",
            priority=NotificationPriority.HIGH,
            user_id=user_id,
        )

    async def notify_format_unsupported(self, user_id: str | None = None) -> bool:
        return await self.send_notification(
            notification_type=NotificationType.FORMAT_UNSUPPORTED,
            title="Format Not Supported",
            message="This audio format isn't supported or the network is unavailable.",
            priority=NotificationPriority.CRITICAL,
            user_id=user_id,
        )

    async def notify_playback_failed(self, reason: str, user_id: str | None = None) -> bool:
        return await self.send_notification(
            notification_type=NotificationType.PLAYBACK_FAILED,
            title="Playback Failed",
            message=f"Could not start playback: {reason}",
            priority=NotificationPriority.CRITICAL,
            user_id=user_id,
        )

    async def notify_library(
        self,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        user_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> bool:
        notification_type = (
            NotificationType.LIBRARY_ERROR
            if priority == NotificationPriority.CRITICAL
            else NotificationType.LIBRARY_UPDATED
        )
        return await self.send_notification(
            notification_type=notification_type,
            title="Library",
            message=message,
            priority=priority,
            data=data,
            user_id=user_id,
        )
