"""
Утилиты для работы со временем записи.
Время внутри дня хранится как количество минут от полуночи.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from salon_booking.core.config import settings
from salon_booking.core.exceptions import InvalidData, InvalidTime


def now_local() -> datetime:
    """Текущее время салона без tzinfo (все даты и время в БД хранятся в часовом поясе салона)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def parse_date(value: str) -> date:
    """Парсит дату в формате YYYY-MM-DD."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidData(f"Invalid date format: {value!r}, expected YYYY-MM-DD")


def parse_hhmm(value: str) -> time:
    """Парсит время в формате HH:MM."""
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise InvalidTime(f"Invalid time format: {value!r}, expected HH:MM")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Пересечение полуоткрытых интервалов [start, end)."""
    return start_a < end_b and end_a > start_b


def booking_cutoff(now: Optional[datetime] = None) -> datetime:
    """Момент, после которого (строго) можно начинать запись: сейчас + буфер."""
    now = now or now_local()
    return now + timedelta(minutes=settings.BOOKING_BUFFER_MINUTES)


def slot_datetime(target_date: date, start_minute: int) -> datetime:
    return datetime.combine(target_date, time.min) + timedelta(minutes=start_minute)


def is_after_cutoff(target_date: date, start_minute: int, now: Optional[datetime] = None) -> bool:
    return slot_datetime(target_date, start_minute) > booking_cutoff(now)
