"""
Правила смены статуса записи.

Вся логика "кто и куда может перевести запись" собрана в evaluate_status_change,
чтобы ее можно было проверять отдельно от HTTP слоя.
"""
from dataclasses import dataclass
from typing import Optional, Type

from salon_booking.core.exceptions import BookingError, InvalidTransition, PermissionDenied
from salon_booking.models import Booking, BookingStatus, UserRole

# Допустимые переходы конечного автомата. COMPLETED и CANCELLED терминальные.
TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


@dataclass(frozen=True)
class Actor:
    """Пользователь, выполняющий запрос (id и роль приходят от внешнего аутентификатора)"""
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    no_op: bool = False
    reason: Optional[str] = None
    error: Optional[Type[BookingError]] = None

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise self.error(self.reason)


def _deny(error: Type[BookingError], reason: str) -> PolicyDecision:
    return PolicyDecision(allowed=False, reason=reason, error=error)


def parse_status(value: str) -> Optional[BookingStatus]:
    try:
        return BookingStatus(str(value).upper())
    except ValueError:
        return None


def evaluate_status_change(actor: Actor, booking: Booking, new_status: Optional[BookingStatus]) -> PolicyDecision:
    """
    Проверяет, может ли actor перевести booking в new_status.

    Args:
        actor: Кто меняет статус
        booking: Запись в текущем состоянии
        new_status: Целевой статус (None, если значение не распознано)

    Returns:
        PolicyDecision с флагом allowed, признаком no_op (повторное подтверждение)
        и причиной отказа
    """
    if new_status is None:
        return _deny(InvalidTransition, "Unknown booking status")

    # Права проверяются до конечного автомата
    if actor.role == UserRole.MASTER and booking.master_id != actor.id:
        return _deny(PermissionDenied, "Cannot modify this booking")

    if actor.role == UserRole.CLIENT:
        if booking.client_id != actor.id:
            return _deny(PermissionDenied, "Cannot modify this booking")
        if new_status != BookingStatus.CANCELLED:
            return _deny(PermissionDenied, "Client can only cancel bookings")

    current = booking.status
    if current == BookingStatus.CONFIRMED and new_status == BookingStatus.CONFIRMED:
        return PolicyDecision(allowed=True, no_op=True)

    if not TRANSITIONS[current]:
        return _deny(InvalidTransition, f"Booking is already {current.value.lower()}")

    if new_status not in TRANSITIONS[current]:
        return _deny(
            InvalidTransition,
            f"Cannot change status from {current.value.lower()} to {new_status.value.lower()}"
        )

    return PolicyDecision(allowed=True)


def cancelled_by(actor: Actor) -> str:
    """Кто отменил запись: client, master или admin"""
    return actor.role.value.lower()
