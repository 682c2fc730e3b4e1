"""
Генерация свободных слотов для записи.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from salon_booking.core.config import settings
from salon_booking.core.exceptions import NotFound
from salon_booking.repositories import BookingRepository, ServiceRepository, ShiftRepository, UserRepository
from salon_booking.utils.time_utils import (
    booking_cutoff,
    format_minutes,
    intervals_overlap,
    now_local,
    slot_datetime,
    to_minutes,
)

logger = logging.getLogger(__name__)

REASON_NO_SHIFT = "Master is not working on this date"
REASON_PAST_DATE = "Date is in the past"
REASON_NO_MASTERS = "No masters provide this service"


@dataclass
class Availability:
    date: date
    slots: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def as_dict(self) -> dict:
        data = {"date": self.date.isoformat(), "availableSlots": self.slots}
        if self.reason:
            data["message"] = self.reason
        return data


def build_slots(
    shift_start: int,
    shift_end: int,
    duration: int,
    occupied: Sequence[Tuple[int, int]],
    interval: int,
    target_date: Optional[date] = None,
    cutoff: Optional[datetime] = None,
) -> List[int]:
    """
    Строит сетку начал записи внутри смены и убирает занятые.

    Args:
        shift_start: Начало смены в минутах от полуночи
        shift_end: Конец смены в минутах от полуночи
        duration: Длительность услуги в минутах
        occupied: Занятые интервалы [start, end) в минутах
        interval: Шаг сетки в минутах
        target_date: Дата (нужна только вместе с cutoff)
        cutoff: Слоты, начинающиеся не позже этого момента, отбрасываются

    Returns:
        Отсортированный список начал слотов в минутах
    """
    slots = []
    start = shift_start
    while start + duration <= shift_end:
        end = start + duration
        busy = any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in occupied)
        expired = cutoff is not None and slot_datetime(target_date, start) <= cutoff
        if not busy and not expired:
            slots.append(start)
        start += interval
    return slots


class SlotService:
    """Сервис для поиска свободного времени у мастеров"""

    def __init__(self, db: Session):
        self.shift_repository = ShiftRepository(db)
        self.booking_repository = BookingRepository(db)
        self.service_repository = ServiceRepository(db)
        self.user_repository = UserRepository(db)

    def resolve_duration(self, service_id: Optional[int]) -> int:
        """Длительность услуги; для неизвестной услуги берется длительность по умолчанию"""
        if service_id is not None:
            service = self.service_repository.get_by_id(service_id)
            if service is not None:
                return service.duration_minutes
            logger.warning(f"⚠️ [SLOTS] Услуга {service_id} не найдена, используем {settings.DEFAULT_SERVICE_DURATION_MINUTES} мин")
        return settings.DEFAULT_SERVICE_DURATION_MINUTES

    def free_minutes(
        self,
        master_id: int,
        target_date: date,
        duration: int,
        now: Optional[datetime] = None,
    ) -> Tuple[List[int], Optional[str]]:
        """
        Свободные начала записи у мастера на дату.

        Returns:
            (слоты в минутах, причина пустого результата или None)
        """
        now = now or now_local()
        if target_date < now.date():
            return [], REASON_PAST_DATE

        shift = self.shift_repository.find_by_master_and_date(master_id, target_date)
        if shift is None or not shift.is_active:
            logger.info(f"📅 [SLOTS] Мастер {master_id} не работает {target_date}")
            return [], REASON_NO_SHIFT

        occupied = [
            (b.start_minute, b.end_minute)
            for b in self.booking_repository.get_active_for_master_on_date(master_id, target_date)
        ]
        cutoff = booking_cutoff(now) if target_date == now.date() else None

        slots = build_slots(
            to_minutes(shift.start_time),
            to_minutes(shift.end_time),
            duration,
            occupied,
            settings.SLOT_INTERVAL_MINUTES,
            target_date=target_date,
            cutoff=cutoff,
        )
        logger.info(f"🆓 [SLOTS] Мастер {master_id}, {target_date}: {len(slots)} свободных слотов, занято {len(occupied)}")
        return slots, None

    def get_master_availability(
        self,
        master_id: int,
        target_date: date,
        service_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Availability:
        """
        Свободные слоты мастера в формате "HH:MM".

        Raises:
            NotFound: мастер не найден или отключен
        """
        master = self.user_repository.get_master(master_id)
        if master is None or not master.is_active:
            raise NotFound("Master not found")

        duration = self.resolve_duration(service_id)
        slots, reason = self.free_minutes(master_id, target_date, duration, now)
        return Availability(target_date, [format_minutes(m) for m in slots], reason)

    def get_service_availability(
        self,
        service_id: int,
        target_date: date,
        now: Optional[datetime] = None,
    ) -> Availability:
        """
        Объединение свободных слотов всех мастеров, оказывающих услугу.
        Используется в режиме "любой мастер".
        """
        service = self.service_repository.get_by_id(service_id)
        if service is None:
            raise NotFound("Service not found")

        masters = self.user_repository.get_masters_for_service(service_id)
        if not masters:
            return Availability(target_date, [], REASON_NO_MASTERS)

        union = set()
        reason = None
        for master in masters:
            slots, reason = self.free_minutes(master.id, target_date, service.duration_minutes, now)
            union.update(slots)

        if union:
            reason = None
        return Availability(target_date, [format_minutes(m) for m in sorted(union)], reason)
