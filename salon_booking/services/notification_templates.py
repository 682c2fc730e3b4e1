"""
Тексты уведомлений Telegram (Markdown).
"""
from datetime import date

from salon_booking.services.notification_service import NotificationKind

WEEKDAYS = ["понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье"]

MONTHS = {
    1: "января", 2: "февраля", 3: "марта", 4: "апреля", 5: "мая", 6: "июня",
    7: "июля", 8: "августа", 9: "сентября", 10: "октября", 11: "ноября", 12: "декабря"
}

CANCELLED_BY_TEXT = {
    "master": "мастером",
    "admin": "администратором",
    "client": "вами",
}


def format_date(value: str) -> str:
    """'2026-01-23' -> 'пятница, 23 января'"""
    d = date.fromisoformat(value)
    return f"{WEEKDAYS[d.weekday()]}, {d.day} {MONTHS[d.month]}"


def _details(payload: dict, with_client: bool = False, with_master: bool = True) -> str:
    lines = []
    if with_client:
        lines.append(f"👤 Клиент: {payload.get('client_name', 'Клиент')}")
    lines.append(f"💇 Услуга: {payload['service_name']}")
    if with_master:
        lines.append(f"👤 Мастер: {payload['master_name']}")
    lines.append(f"📅 Дата: {format_date(payload['date'])}")
    lines.append(f"⏰ Время: {payload['time']}")
    return "\n".join(lines)


def render(kind: NotificationKind, payload: dict) -> str:
    """Собирает текст уведомления по его типу"""
    if kind == NotificationKind.BOOKING_CREATED:
        return f"📝 *Запись создана!*\n\n{_details(payload)}\n\n⏳ Ожидайте подтверждения от мастера."

    if kind == NotificationKind.MASTER_NEW_BOOKING:
        return (
            f"🔔 *Новая запись!*\n\n{_details(payload, with_client=True, with_master=False)}\n\n"
            "Подтвердите или отклоните запись в приложении."
        )

    if kind == NotificationKind.ADMIN_NEW_BOOKING:
        return f"📊 *Новая запись в салоне*\n\n{_details(payload, with_client=True)}"

    if kind == NotificationKind.BOOKING_CONFIRMED:
        return f"✅ *Запись подтверждена!*\n\n{_details(payload)}\n\nЖдём вас! 💅"

    if kind == NotificationKind.BOOKING_CANCELLED:
        by = CANCELLED_BY_TEXT.get(payload.get("cancelled_by"), "")
        return f"❌ *Запись отменена {by}*\n\n{_details(payload)}\n\nВы можете записаться на другое время."

    if kind == NotificationKind.MASTER_BOOKING_CANCELLED:
        return f"❌ *Клиент отменил запись*\n\n{_details(payload, with_client=True, with_master=False)}"

    if kind == NotificationKind.BOOKING_REMINDER:
        hours_left = payload.get("hours_left")
        when = "завтра" if hours_left == 24 else "через 2 часа"
        return f"⏰ *Напоминание о записи {when}*\n\n{_details(payload)}\n\nДо встречи!"

    raise ValueError(f"Unknown notification kind: {kind}")
