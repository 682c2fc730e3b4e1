"""
Просмотр записей с учетом роли пользователя.
"""
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import InvalidData
from salon_booking.models import Booking, BookingStatus, UserRole
from salon_booking.repositories import BookingRepository
from salon_booking.services.booking_policy import Actor, parse_status


def _statuses(status: Optional[str], show_completed: bool) -> Optional[List[BookingStatus]]:
    """
    Фильтр по статусам: конкретный статус, иначе только активные записи,
    если не просили показать завершенные и отмененные.
    """
    if status and status.lower() != "all":
        parsed = parse_status(status)
        if parsed is None:
            raise InvalidData(f"Unknown booking status: {status}")
        return [parsed]
    if show_completed:
        return None
    return [BookingStatus.PENDING, BookingStatus.CONFIRMED]


class BookingQueryService:
    def __init__(self, db: Session):
        self.booking_repository = BookingRepository(db)

    def list_for_actor(
        self,
        actor: Actor,
        status: Optional[str] = None,
        show_completed: bool = False,
        from_date: Optional[date] = None,
    ) -> List[Booking]:
        """Клиент видит свои записи, мастер - назначенные ему, администратор - все"""
        client_id = actor.id if actor.role == UserRole.CLIENT else None
        master_id = actor.id if actor.role == UserRole.MASTER else None
        return self.booking_repository.search(
            client_id=client_id,
            master_id=master_id,
            statuses=_statuses(status, show_completed),
            from_date=from_date,
        )

    def list_for_admin(
        self,
        master_id: Optional[int] = None,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> List[Booking]:
        statuses = _statuses(status, show_completed=True)
        return self.booking_repository.search(master_id=master_id, statuses=statuses, on_date=on_date)
