"""
Исходящие уведомления о событиях записи.

Сервисы записи не отправляют сообщения сами: они возвращают список событий Notification,
а API-слой передает его в фоновую задачу dispatch_notifications. Ошибка отправки никогда не
влияет на результат операции, которая породила событие.
"""
import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

from salon_booking.core.config import settings

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    BOOKING_CREATED = "booking_created"
    MASTER_NEW_BOOKING = "master_new_booking"
    ADMIN_NEW_BOOKING = "admin_new_booking"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    MASTER_BOOKING_CANCELLED = "master_booking_cancelled"
    BOOKING_REMINDER = "booking_reminder"


@dataclass(frozen=True)
class Notification:
    recipient_id: int
    kind: NotificationKind
    payload: dict = field(default_factory=dict)


class Notifier(ABC):
    @abstractmethod
    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> bool:
        """Отправляет уведомление пользователю. Returns: True при успешной доставке."""
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Используется, когда бот не настроен: уведомления только пишутся в лог."""

    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> bool:
        logger.info(f"📭 NOTIFY: {kind.value} -> user {recipient_id} (бот не настроен), payload={payload}")
        return True


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Получить или создать нотификатор в зависимости от настроек"""
    global _notifier
    if _notifier is None:
        if settings.TELEGRAM_BOT_TOKEN:
            from salon_booking.services.telegram_service import TelegramNotifier
            _notifier = TelegramNotifier(token=settings.TELEGRAM_BOT_TOKEN)
        else:
            _notifier = LoggingNotifier()
    return _notifier


def set_notifier(notifier: Optional[Notifier]) -> None:
    global _notifier
    _notifier = notifier


async def send_notification(notification: Notification, notifier: Optional[Notifier] = None) -> bool:
    """
    Отправляет одно уведомление с ограничением по времени.

    Returns:
        True если нотификатор подтвердил доставку. Исключения не пробрасываются.
    """
    notifier = notifier or get_notifier()
    try:
        return await asyncio.wait_for(
            notifier.notify(notification.recipient_id, notification.kind, notification.payload),
            timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(
            f"❌ NOTIFY: Таймаут отправки {notification.kind.value} пользователю {notification.recipient_id}"
        )
    except Exception as e:
        logger.error(
            f"❌ NOTIFY: Ошибка отправки {notification.kind.value} пользователю {notification.recipient_id}: {e}"
        )
    return False


async def dispatch_notifications(notifications: Iterable[Notification], notifier: Optional[Notifier] = None) -> int:
    """
    Фоновая задача: доставляет события по одному, независимо друг от друга.

    Returns:
        Количество успешно доставленных уведомлений
    """
    delivered = 0
    for notification in notifications:
        if await send_notification(notification, notifier):
            delivered += 1
        else:
            logger.warning(f"⚠️ NOTIFY: Уведомление {notification.kind.value} не доставлено")
    return delivered
