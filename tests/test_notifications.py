import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from salon_booking.services.notification_service import (
    Notification,
    NotificationKind,
    Notifier,
    dispatch_notifications,
    send_notification,
)
from salon_booking.services.notification_templates import format_date, render
from salon_booking.services.telegram_service import TelegramNotifier, TelegramService
from tests.conftest import RecordingNotifier

PAYLOAD = {
    "booking_id": 1,
    "service_name": "Стрижка",
    "master_name": "Маша",
    "client_name": "Ольга Петрова",
    "date": "2026-01-23",
    "time": "11:00",
}


class SlowNotifier(Notifier):
    async def notify(self, recipient_id, kind, payload):
        await asyncio.sleep(5)
        return True


def test_format_date():
    assert format_date("2026-01-23") == "пятница, 23 января"


def test_render_contains_booking_details():
    text = render(NotificationKind.BOOKING_CREATED, PAYLOAD)

    assert "Стрижка" in text
    assert "Маша" in text
    assert "23 января" in text
    assert "11:00" in text


def test_render_cancelled_by_master():
    text = render(NotificationKind.BOOKING_CANCELLED, {**PAYLOAD, "cancelled_by": "master"})

    assert "отменена мастером" in text


def test_render_reminders():
    assert "завтра" in render(NotificationKind.BOOKING_REMINDER, {**PAYLOAD, "hours_left": 24})
    assert "через 2 часа" in render(NotificationKind.BOOKING_REMINDER, {**PAYLOAD, "hours_left": 2})


@pytest.mark.asyncio
async def test_dispatch_delivers_each_notification_independently():
    notifier = RecordingNotifier(fail_for={2}, raise_for={3})
    notifications = [
        Notification(1, NotificationKind.BOOKING_CREATED, PAYLOAD),
        Notification(2, NotificationKind.MASTER_NEW_BOOKING, PAYLOAD),
        Notification(3, NotificationKind.ADMIN_NEW_BOOKING, PAYLOAD),
        Notification(4, NotificationKind.ADMIN_NEW_BOOKING, PAYLOAD),
    ]

    delivered = await dispatch_notifications(notifications, notifier)

    assert delivered == 2
    assert [recipient for recipient, _, _ in notifier.sent] == [1, 4]


@pytest.mark.asyncio
async def test_send_notification_times_out():
    notification = Notification(1, NotificationKind.BOOKING_CONFIRMED, PAYLOAD)

    with patch("salon_booking.services.notification_service.settings.NOTIFIER_TIMEOUT_SECONDS", 0.01):
        assert await send_notification(notification, SlowNotifier()) is False


def _response(status_code, body):
    return httpx.Response(status_code, json=body, request=httpx.Request("POST", "https://api.telegram.org"))


@pytest.mark.asyncio
async def test_telegram_service_sends_markdown():
    service = TelegramService(token="TOKEN")

    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
        mock_post.return_value = _response(200, {"ok": True})
        assert await service.send_message(42, "*hi*") is True

    url = mock_post.call_args.args[0]
    assert url == "https://api.telegram.org/botTOKEN/sendMessage"
    assert mock_post.call_args.kwargs["json"] == {"chat_id": 42, "text": "*hi*", "parse_mode": "Markdown"}


@pytest.mark.asyncio
async def test_telegram_service_reports_api_errors():
    service = TelegramService(token="TOKEN")

    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
        mock_post.return_value = _response(200, {"ok": False, "description": "chat not found"})
        assert await service.send_message(42, "text") is False

        mock_post.return_value = _response(403, {"ok": False})
        assert await service.send_message(42, "text") is False

        mock_post.side_effect = httpx.ConnectError("boom")
        assert await service.send_message(42, "text") is False


@pytest.mark.asyncio
async def test_telegram_notifier_resolves_chat_and_renders():
    service = AsyncMock(spec=TelegramService)
    service.send_message.return_value = True
    notifier = TelegramNotifier(token="TOKEN", resolve_chat_id=lambda user_id: 5000 + user_id, service=service)

    assert await notifier.notify(7, NotificationKind.BOOKING_CONFIRMED, PAYLOAD) is True

    chat_id, text = service.send_message.call_args.args
    assert chat_id == 5007
    assert "подтверждена" in text


@pytest.mark.asyncio
async def test_telegram_notifier_without_chat_id():
    service = AsyncMock(spec=TelegramService)
    notifier = TelegramNotifier(token="TOKEN", resolve_chat_id=lambda user_id: None, service=service)

    assert await notifier.notify(7, NotificationKind.BOOKING_CONFIRMED, PAYLOAD) is False
    service.send_message.assert_not_called()
