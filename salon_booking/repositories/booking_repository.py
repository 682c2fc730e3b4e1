"""
Репозиторий для работы с записями клиентов
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, not_, update
from sqlalchemy.orm import Session, joinedload

from salon_booking.models import ACTIVE_STATUSES, Booking, BookingStatus
from .base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    """Репозиторий для работы с записями клиентов"""

    def __init__(self, session: Session):
        super().__init__(Booking, session)

    def _with_relations(self):
        return self.db.query(Booking).options(
            joinedload(Booking.client),
            joinedload(Booking.master),
            joinedload(Booking.service),
        )

    def get_with_relations(self, booking_id: int) -> Optional[Booking]:
        return self._with_relations().filter(Booking.id == booking_id).first()

    def get_active_for_master_on_date(self, master_id: int, booking_date: date) -> List[Booking]:
        """Получить активные (PENDING/CONFIRMED) записи мастера на дату"""
        return (
            self.db.query(Booking)
            .filter(
                Booking.master_id == master_id,
                Booking.date == booking_date,
                Booking.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Booking.start_minute)
            .all()
        )

    def search(
        self,
        client_id: Optional[int] = None,
        master_id: Optional[int] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        from_date: Optional[date] = None,
        on_date: Optional[date] = None,
    ) -> List[Booking]:
        """Получить записи по фильтрам, новые сверху"""
        query = self._with_relations()
        if client_id is not None:
            query = query.filter(Booking.client_id == client_id)
        if master_id is not None:
            query = query.filter(Booking.master_id == master_id)
        if statuses is not None:
            query = query.filter(Booking.status.in_(list(statuses)))
        if from_date is not None:
            query = query.filter(Booking.date >= from_date)
        if on_date is not None:
            query = query.filter(Booking.date == on_date)
        return query.order_by(Booking.date.desc(), Booking.start_minute.desc()).all()

    def get_reminder_candidates(self, start_date: date, end_date: date) -> List[Booking]:
        """Подтвержденные записи в диапазоне дат, которым отправлены не все напоминания"""
        return (
            self._with_relations()
            .populate_existing()
            .filter(
                Booking.status == BookingStatus.CONFIRMED,
                Booking.date >= start_date,
                Booking.date <= end_date,
                not_(and_(Booking.reminder_24h_sent.is_(True), Booking.reminder_2h_sent.is_(True))),
            )
            .order_by(Booking.date, Booking.start_minute)
            .all()
        )

    def set_status(self, booking_id: int, expected: BookingStatus, new_status: BookingStatus) -> bool:
        """
        Меняет статус, только если запись все еще в ожидаемом статусе.

        Returns:
            True если статус изменен, False если запись уже изменил кто-то другой
        """
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected)
            .values(status=new_status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_reminder_sent(self, booking_id: int, flag: str) -> bool:
        """
        Ставит флаг напоминания, только если он еще не стоит.

        Args:
            booking_id: ID записи
            flag: 'reminder_24h_sent' или 'reminder_2h_sent'

        Returns:
            True если флаг поставлен этим вызовом
        """
        column = getattr(Booking, flag)
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, column.is_(False))
            .values({flag: True})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
