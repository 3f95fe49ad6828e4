"""Unit tests for NotificationService.

Hey future me - these tests verify the notification service works correctly!
Tests are split into:
1. Logging-only mode (no providers)
2. Provider orchestration (with mock providers)
3. Convenience methods (what the player actually sends, through real toasts)
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from talebox.application.services.notification_service import NotificationService
from talebox.domain.ports.notification import (
    Notification,
    NotificationPriority,
    NotificationResult,
    NotificationType,
)
from talebox.infrastructure.notifications import ToastNotificationProvider


def make_provider(name: str, success: bool = True, configured: bool = True) -> MagicMock:
    provider = MagicMock()
    provider.name = name
    provider.supports.return_value = True
    provider.is_configured = AsyncMock(return_value=configured)
    provider.send = AsyncMock(
        return_value=NotificationResult(
            success=success,
            provider_name=name,
            notification_type=NotificationType.CUSTOM,
            error=None if success else "Connection failed",
        )
    )
    return provider


class TestLoggingOnly:
    """No providers configured."""

    @pytest.fixture
    def service(self) -> NotificationService:
        return NotificationService()

    @pytest.fixture
    def mock_logger(self) -> MagicMock:
        return MagicMock(spec=logging.Logger)

    async def test_send_is_logged_and_succeeds(
        self, service: NotificationService, mock_logger: MagicMock
    ):
        with patch("talebox.application.services.notification_service.logger", mock_logger):
            result = await service.notify_demo_audio(book_id="book-1")

        assert result is True
        mock_logger.info.assert_called_once()
        call_args = mock_logger.info.call_args[0][0]
        assert "[NOTIFICATION]" in call_args
        assert "Using Demo Audio" in call_args

    async def test_long_messages_are_truncated_in_logs(
        self, service: NotificationService, mock_logger: MagicMock
    ):
        with patch("talebox.application.services.notification_service.logger", mock_logger):
            await service.send_notification(NotificationType.CUSTOM, "Title", "x" * 500)

        call_args = mock_logger.info.call_args[0][0]
        assert "x" * 100 in call_args
        assert "x" * 101 not in call_args


class TestWithProviders:
    """Provider orchestration.

    Hey future me - these tests verify a broken provider never breaks the caller!
    """

    async def test_notification_is_built_and_sent(self):
        provider = make_provider("test_provider")
        service = NotificationService([provider])

        result = await service.send_notification(
            notification_type=NotificationType.PLAYBACK_FAILED,
            title="Test Title",
            message="Test Message",
            priority=NotificationPriority.HIGH,
            data={"key": "value"},
            user_id="user-1",
        )

        assert result is True
        sent = provider.send.call_args[0][0]
        assert isinstance(sent, Notification)
        assert sent.type == NotificationType.PLAYBACK_FAILED
        assert sent.priority == NotificationPriority.HIGH
        assert sent.data == {"key": "value"}
        assert sent.user_id == "user-1"
        assert sent.timestamp is not None

    async def test_all_providers_failing_returns_false(self):
        service = NotificationService([make_provider("failing", success=False)])
        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is False

    async def test_partial_success_returns_true(self):
        service = NotificationService([make_provider("ok"), make_provider("fail", success=False)])
        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is True

    async def test_raising_provider_becomes_failed_result(self):
        broken = make_provider("broken")
        broken.send = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = make_provider("healthy")
        service = NotificationService([broken, healthy])

        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is True
        healthy.send.assert_awaited_once()

    async def test_unconfigured_providers_are_skipped(self):
        idle = make_provider("idle", configured=False)
        service = NotificationService([idle])

        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is True
        idle.send.assert_not_called()

    async def test_is_configured_error_skips_provider(self):
        flaky = make_provider("flaky")
        flaky.is_configured = AsyncMock(side_effect=RuntimeError("no config"))
        service = NotificationService([flaky])

        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is True
        flaky.send.assert_not_called()

    async def test_unsupported_type_is_not_sent(self):
        picky = make_provider("picky")
        picky.supports.return_value = False
        service = NotificationService([picky])

        assert await service.send_notification(NotificationType.CUSTOM, "T", "M") is False
        picky.send.assert_not_called()


class TestConvenienceMethods:
    """The toasts users actually see."""

    @pytest.fixture
    def toasts(self) -> ToastNotificationProvider:
        return ToastNotificationProvider()

    @pytest.fixture
    def service(self, toasts: ToastNotificationProvider) -> NotificationService:
        return NotificationService([toasts])

    @pytest.mark.parametrize(
        ("send", "title", "style"),
        [
            (lambda s: s.notify_demo_audio(book_id="b-1"), "Using Demo Audio", "info"),
            (lambda s: s.notify_player_not_ready(), "Player Not Ready", "warning"),
            (lambda s: s.notify_permission_required(), "Permission Required", "warning"),
            (lambda s: s.notify_format_unsupported(), "Format Not Supported", "error"),
            (lambda s: s.notify_playback_failed("decoder crashed"), "Playback Failed", "error"),
        ],
    )
    async def test_titles_and_styles(self, service, toasts, send, title, style):
        await send(service)

        [toast] = toasts.drain()
        assert toast.title == title
        assert toast.style == style

    async def test_playback_failed_carries_reason(self, service, toasts):
        await service.notify_playback_failed("decoder crashed", user_id="user-1")

        [toast] = toasts.drain()
        assert "decoder crashed" in toast.message
        assert toast.user_id == "user-1"

    async def test_library_critical_is_an_error_type(self, service, toasts):
        await service.notify_library("Failed to update library", priority=NotificationPriority.CRITICAL)
        await service.notify_library("Book saved for later!")

        errored, updated = toasts.drain()
        assert errored.type == NotificationType.LIBRARY_ERROR
        assert errored.style == "error"
        assert updated.type == NotificationType.LIBRARY_UPDATED
        assert updated.style == "success"
