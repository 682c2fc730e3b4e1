"""
Жизненный цикл записи: подтверждение, завершение, отмена.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import InvalidTransition, NotFound
from salon_booking.models import Booking, BookingStatus
from salon_booking.repositories import BookingRepository
from salon_booking.services.booking_events import status_changed_events
from salon_booking.services.booking_policy import Actor, evaluate_status_change, parse_status
from salon_booking.services.notification_service import Notification

logger = logging.getLogger(__name__)


@dataclass
class StatusChangeResult:
    booking: Booking
    changed: bool
    notifications: List[Notification] = field(default_factory=list)


class LifecycleService:
    """Сервис смены статусов записей"""

    def __init__(self, db: Session):
        self.db = db
        self.booking_repository = BookingRepository(db)

    def change_status(self, booking_id: int, actor: Actor, new_status: str) -> StatusChangeResult:
        """
        Переводит запись в новый статус, если это разрешено политикой.

        Args:
            booking_id: ID записи
            actor: Пользователь, который меняет статус
            new_status: Новый статус (регистр не важен)

        Returns:
            StatusChangeResult; при повторном подтверждении changed=False и уведомлений нет

        Raises:
            NotFound, PermissionDenied, InvalidTransition
        """
        booking = self.booking_repository.get_with_relations(booking_id)
        if booking is None:
            raise NotFound("Booking not found")

        target = parse_status(new_status)
        decision = evaluate_status_change(actor, booking, target)
        if not decision.allowed:
            logger.warning(
                f"🚫 [LIFECYCLE] {actor.role.value} {actor.id} не может перевести запись {booking_id} "
                f"в {new_status}: {decision.reason}"
            )
        decision.raise_if_denied()

        if decision.no_op:
            logger.info(f"ℹ️ [LIFECYCLE] Запись {booking_id} уже подтверждена")
            return StatusChangeResult(booking=booking, changed=False)

        previous = booking.status
        if not self.booking_repository.set_status(booking_id, previous, target):
            self.db.rollback()
            raise InvalidTransition("Booking was modified by another request")
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"✅ [LIFECYCLE] Запись {booking_id}: {previous.value} -> {target.value} ({actor.role.value} {actor.id})")
        return StatusChangeResult(
            booking=booking,
            changed=True,
            notifications=status_changed_events(booking, actor, target),
        )

    def cancel(self, booking_id: int, actor: Actor) -> StatusChangeResult:
        return self.change_status(booking_id, actor, BookingStatus.CANCELLED.value)
