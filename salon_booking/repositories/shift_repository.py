"""
Репозиторий для работы со сменами мастеров
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from salon_booking.models import Shift
from .base import BaseRepository


class ShiftRepository(BaseRepository[Shift]):
    """Репозиторий для работы со сменами мастеров"""

    def __init__(self, session: Session):
        super().__init__(Shift, session)

    def find_by_master_and_date(self, master_id: int, shift_date: date) -> Optional[Shift]:
        """Находит смену мастера на конкретную дату"""
        return (
            self.db.query(Shift)
            .filter(Shift.master_id == master_id, Shift.date == shift_date)
            .first()
        )

    def get_active_shifts(
        self,
        master_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Shift]:
        """Получает активные смены с фильтрами по мастеру и периоду"""
        query = (
            self.db.query(Shift)
            .options(joinedload(Shift.master))
            .filter(Shift.is_active.is_(True))
        )
        if master_id is not None:
            query = query.filter(Shift.master_id == master_id)
        if start_date is not None:
            query = query.filter(Shift.date >= start_date)
        if end_date is not None:
            query = query.filter(Shift.date <= end_date)
        return query.order_by(Shift.date, Shift.start_time).all()

    def claim(self, shift_id: int) -> None:
        """
        Увеличивает версию смены.
        UPDATE берет блокировку строки (в SQLite - блокировку записи всей БД) до конца транзакции,
        поэтому параллельные бронирования на эту смену выполняются последовательно.
        """
        self.db.execute(
            update(Shift)
            .where(Shift.id == shift_id)
            .values(version=Shift.version + 1)
            .execution_options(synchronize_session=False)
        )
