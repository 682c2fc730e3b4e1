"""
Реестр смен мастеров: не больше одной смены на пару мастер + дата.
"""
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import CannotModifyPast, InvalidData, NotFound
from salon_booking.models import Shift
from salon_booking.repositories import ShiftRepository, UserRepository
from salon_booking.utils.time_utils import now_local

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    skipped: int = 0

    def as_dict(self) -> dict:
        return {
            "created": self.created,
            "updated": self.updated,
            "deactivated": self.deactivated,
            "skipped": self.skipped,
        }


class ScheduleService:
    """
    Сервис для управления сменами мастеров.
    Повторное сохранение смены на ту же дату перезаписывает время и снова активирует смену.
    """

    def __init__(self, db: Session):
        self.db = db
        self.shift_repository = ShiftRepository(db)
        self.user_repository = UserRepository(db)

    def _require_master(self, master_id: int) -> None:
        if self.user_repository.get_master(master_id) is None:
            raise NotFound("Master not found")

    @staticmethod
    def _validate_times(start: time, end: time) -> None:
        if start >= end:
            raise InvalidData("Shift start must be before shift end")

    def get_shift(self, master_id: int, shift_date: date) -> Optional[Shift]:
        """Активная смена мастера на дату или None"""
        shift = self.shift_repository.find_by_master_and_date(master_id, shift_date)
        if shift is None or not shift.is_active:
            return None
        return shift

    def _upsert(self, master_id: int, shift_date: date, start: time, end: time) -> bool:
        """Returns: True если смена создана, False если обновлена"""
        shift = self.shift_repository.find_by_master_and_date(master_id, shift_date)
        if shift is None:
            self.shift_repository.add(
                Shift(master_id=master_id, date=shift_date, start_time=start, end_time=end, is_active=True)
            )
            return True

        shift.start_time = start
        shift.end_time = end
        shift.is_active = True
        self.db.flush()
        return False

    def upsert_shift(self, master_id: int, shift_date: date, start: time, end: time) -> Shift:
        """
        Создает смену или перезаписывает существующую на эту дату.

        Args:
            master_id: ID мастера
            shift_date: Дата смены
            start: Начало смены
            end: Конец смены (строго позже начала)

        Returns:
            Сохраненная смена
        """
        self._validate_times(start, end)
        self._require_master(master_id)

        created = self._upsert(master_id, shift_date, start, end)
        self.db.commit()

        action = "создана" if created else "обновлена"
        logger.info(f"✅ [SCHEDULE] Смена {action}: master_id={master_id}, date={shift_date}, {start:%H:%M}-{end:%H:%M}")
        return self.shift_repository.find_by_master_and_date(master_id, shift_date)

    def bulk_upsert(self, master_ids: Iterable[int], dates: Iterable[date], start: time, end: time) -> BulkResult:
        """
        Применяет upsert_shift ко всем парам мастер x дата.
        Пары независимы друг от друга, общего отката нет.
        """
        self._validate_times(start, end)
        dates = list(dates)
        result = BulkResult()

        for master_id in master_ids:
            if self.user_repository.get_master(master_id) is None:
                logger.warning(f"⚠️ [SCHEDULE] Мастер {master_id} не найден, пропускаем")
                result.skipped += len(dates)
                continue
            for shift_date in dates:
                if self._upsert(master_id, shift_date, start, end):
                    result.created += 1
                else:
                    result.updated += 1
                self.db.commit()

        logger.info(f"✅ [SCHEDULE] Массовое сохранение смен: {result.as_dict()}")
        return result

    def _deactivate(self, master_id: int, shift_date: date) -> bool:
        shift = self.shift_repository.find_by_master_and_date(master_id, shift_date)
        if shift is None or not shift.is_active:
            return False
        shift.is_active = False
        self.db.flush()
        return True

    def deactivate_shift(self, master_id: int, shift_date: date, today: Optional[date] = None) -> Shift:
        """
        Снимает смену (записи на эту дату не трогаются).

        Raises:
            CannotModifyPast: дата смены раньше сегодняшней
            NotFound: активной смены нет
        """
        today = today or now_local().date()
        if shift_date < today:
            raise CannotModifyPast("Cannot modify past shifts")

        if not self._deactivate(master_id, shift_date):
            raise NotFound("Shift not found")
        self.db.commit()

        logger.info(f"🗑️ [SCHEDULE] Смена снята: master_id={master_id}, date={shift_date}")
        return self.shift_repository.find_by_master_and_date(master_id, shift_date)

    def bulk_deactivate(
        self,
        master_ids: Iterable[int],
        dates: Iterable[date],
        today: Optional[date] = None,
    ) -> BulkResult:
        """Снимает смены для всех пар мастер x дата. Прошедшие даты и отсутствующие смены пропускаются."""
        today = today or now_local().date()
        dates = list(dates)
        result = BulkResult()

        for master_id in master_ids:
            for shift_date in dates:
                if shift_date < today or not self._deactivate(master_id, shift_date):
                    result.skipped += 1
                    continue
                result.deactivated += 1
                self.db.commit()

        logger.info(f"🗑️ [SCHEDULE] Массовое снятие смен: {result.as_dict()}")
        return result

    def list_shifts(
        self,
        master_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Shift]:
        """Активные смены за период (для админского календаря)"""
        return self.shift_repository.get_active_shifts(master_id, start_date, end_date)
