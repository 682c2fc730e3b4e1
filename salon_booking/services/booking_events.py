"""
Построение событий-уведомлений для записей.
"""
from typing import Iterable, List

from salon_booking.models import Booking, BookingStatus
from salon_booking.services.booking_policy import Actor, cancelled_by
from salon_booking.services.notification_service import Notification, NotificationKind
from salon_booking.utils.time_utils import format_minutes


def booking_payload(booking: Booking) -> dict:
    """Данные записи, которые нужны шаблонам уведомлений"""
    return {
        "booking_id": booking.id,
        "service_name": booking.service.name,
        "master_name": booking.master.display_name,
        "client_name": booking.client.display_name if booking.client else "Клиент",
        "date": booking.date.isoformat(),
        "time": format_minutes(booking.start_minute),
    }


def booking_created_events(booking: Booking, admin_ids: Iterable[int] = ()) -> List[Notification]:
    """Клиенту - 'запись создана', мастеру - 'новая запись ждет подтверждения', админам - копия"""
    payload = booking_payload(booking)
    events = [
        Notification(booking.client_id, NotificationKind.BOOKING_CREATED, payload),
        Notification(booking.master_id, NotificationKind.MASTER_NEW_BOOKING, payload),
    ]
    for admin_id in admin_ids:
        events.append(Notification(admin_id, NotificationKind.ADMIN_NEW_BOOKING, payload))
    return events


def status_changed_events(booking: Booking, actor: Actor, new_status: BookingStatus) -> List[Notification]:
    """События после фактической смены статуса"""
    payload = booking_payload(booking)

    if new_status == BookingStatus.CONFIRMED:
        return [Notification(booking.client_id, NotificationKind.BOOKING_CONFIRMED, payload)]

    if new_status == BookingStatus.CANCELLED:
        by = cancelled_by(actor)
        if by == "client":
            return [Notification(booking.master_id, NotificationKind.MASTER_BOOKING_CANCELLED, payload)]
        return [Notification(booking.client_id, NotificationKind.BOOKING_CANCELLED, {**payload, "cancelled_by": by})]

    # COMPLETED: уведомление не предусмотрено
    return []
