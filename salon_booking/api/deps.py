"""
Общие зависимости API: пользователь из заголовков, проверка прав, сервисы.
"""
import logging
from typing import Iterable, Optional

from fastapi import BackgroundTasks, Depends, Header

from salon_booking.core.config import settings
from salon_booking.core.exceptions import PermissionDenied, Unauthorized
from salon_booking.models import UserRole
from salon_booking.services.booking_policy import Actor
from salon_booking.services.notification_service import Notification, dispatch_notifications

logger = logging.getLogger(__name__)


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    """
    Пользователь запроса. Заголовки выставляет внешний аутентификатор,
    которому этот сервис доверяет.
    """
    if not x_user_id or not x_user_role:
        raise Unauthorized("Authentication required")
    try:
        return Actor(id=int(x_user_id), role=UserRole(x_user_role.upper()))
    except ValueError:
        raise Unauthorized("Invalid authentication headers")


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise PermissionDenied("Admin access required")
    return actor


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    if x_cron_secret != settings.CRON_SECRET:
        logger.warning("🚫 CRON: Неверный секрет планировщика")
        raise Unauthorized("Invalid cron secret")


def success(data) -> dict:
    return {"success": True, "data": data}


def enqueue_notifications(background_tasks: BackgroundTasks, notifications: Iterable[Notification]) -> None:
    """Уведомления уходят после ответа клиенту, ошибки отправки на ответ не влияют"""
    notifications = list(notifications)
    if notifications:
        background_tasks.add_task(dispatch_notifications, notifications)
