"""
Создание записей: конкретный мастер или "любой свободный мастер".
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salon_booking.core.exceptions import (
    BookingError,
    InvalidData,
    InvalidDate,
    InvalidTime,
    NoAvailableMasters,
    NotFound,
    SlotTaken,
)
from salon_booking.models import Booking, BookingStatus, Service, User
from salon_booking.repositories import BookingRepository, ServiceRepository, ShiftRepository, UserRepository
from salon_booking.services.booking_events import booking_created_events
from salon_booking.services.notification_service import Notification
from salon_booking.utils.time_utils import (
    format_minutes,
    intervals_overlap,
    is_after_cutoff,
    now_local,
    parse_date,
    parse_hhmm,
    to_minutes,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    booking: Booking
    master_name: str
    message: str
    notifications: List[Notification] = field(default_factory=list)


class BookingService:
    """
    Сервис для создания записей.
    Проверяет входные данные, выбирает мастера и атомарно сохраняет запись.
    """

    def __init__(self, db: Session, choice: Callable[[Sequence[User]], User] = random.choice):
        """
        Args:
            db: Сессия БД
            choice: Выбор мастера среди равных по загрузке (по умолчанию случайный)
        """
        self.db = db
        self.booking_repository = BookingRepository(db)
        self.service_repository = ServiceRepository(db)
        self.shift_repository = ShiftRepository(db)
        self.user_repository = UserRepository(db)
        self.choice = choice

    def _validate_time(self, booking_date: date, start_minute: int, now: datetime) -> None:
        if booking_date < now.date():
            raise InvalidDate("Cannot book in the past")
        if booking_date == now.date() and not is_after_cutoff(booking_date, start_minute, now):
            raise InvalidTime("Selected time is too soon, choose a later slot")

    def _get_service(self, service_id: int) -> Service:
        service = self.service_repository.get_by_id(service_id)
        if service is None or not service.is_active:
            raise NotFound("Service not found")
        return service

    def _conflict(self, master_id: int, booking_date: date, start_minute: int, duration: int) -> Optional[str]:
        """
        Проверяет, может ли мастер принять запись.

        Returns:
            Причина отказа или None, если время свободно
        """
        shift = self.shift_repository.find_by_master_and_date(master_id, booking_date)
        if shift is None or not shift.is_active:
            return "no shift"

        end_minute = start_minute + duration
        if start_minute < to_minutes(shift.start_time) or end_minute > to_minutes(shift.end_time):
            return "outside shift"

        for existing in self.booking_repository.get_active_for_master_on_date(master_id, booking_date):
            if intervals_overlap(start_minute, end_minute, existing.start_minute, existing.end_minute):
                return "overlap"
        return None

    def _select_master(self, service: Service, booking_date: date, start_minute: int) -> User:
        """
        Выбирает наименее загруженного мастера среди тех, кто оказывает услугу
        и свободен в это время. При равной загрузке выбор случайный.
        """
        candidates = []
        for master in self.user_repository.get_masters_for_service(service.id):
            reason = self._conflict(master.id, booking_date, start_minute, service.duration_minutes)
            if reason:
                logger.info(f"🚫 [ALLOCATOR] Мастер {master.id} не подходит: {reason}")
                continue
            load = len(self.booking_repository.get_active_for_master_on_date(master.id, booking_date))
            candidates.append((load, master))

        if not candidates:
            raise NoAvailableMasters("No available masters for this time")

        min_load = min(load for load, _ in candidates)
        least_loaded = [master for load, master in candidates if load == min_load]
        selected = self.choice(least_loaded)
        logger.info(
            f"🎯 [ALLOCATOR] Выбран мастер {selected.id} (загрузка {min_load}, "
            f"кандидатов {len(candidates)}, с минимальной загрузкой {len(least_loaded)})"
        )
        return selected

    def _commit(self, client_id: int, master: User, service: Service, booking_date: date, start_minute: int) -> Booking:
        """
        Сохраняет запись одной транзакцией.
        Смена мастера блокируется до проверки пересечений, уникальный индекс по активным
        записям ловит то, что проскочило мимо блокировки.
        """
        try:
            shift = self.shift_repository.find_by_master_and_date(master.id, booking_date)
            if shift is None or not shift.is_active:
                raise SlotTaken("Master is not working at this time")
            self.shift_repository.claim(shift.id)

            reason = self._conflict(master.id, booking_date, start_minute, service.duration_minutes)
            if reason == "overlap":
                raise SlotTaken("This time slot is already taken")
            if reason:
                raise SlotTaken("Master is not working at this time")

            booking = Booking(
                client_id=client_id,
                master_id=master.id,
                service_id=service.id,
                date=booking_date,
                start_minute=start_minute,
                price=service.price,
                duration_minutes=service.duration_minutes,
                status=BookingStatus.PENDING,
            )
            self.booking_repository.add(booking)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"⚠️ [ALLOCATOR] Слот {booking_date} {format_minutes(start_minute)} у мастера {master.id} занят параллельным запросом")
            raise SlotTaken("This time slot is already taken")
        except BookingError:
            self.db.rollback()
            raise

        return self.booking_repository.get_with_relations(booking.id)

    def create_booking(
        self,
        client_id: int,
        service_id: Optional[int],
        booking_date: Optional[str],
        start_time: Optional[str],
        master_id: Optional[int] = None,
        any_master: bool = False,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Создает запись в статусе PENDING.

        Args:
            client_id: ID клиента
            service_id: ID услуги
            booking_date: Дата в формате "YYYY-MM-DD"
            start_time: Время в формате "HH:MM"
            master_id: ID мастера (обязателен, если any_master=False)
            any_master: Выбрать мастера автоматически
            now: Текущее время салона (для тестов)

        Returns:
            BookingResult с записью и уведомлениями для отправки
        """
        logger.info(
            f"📝 [ALLOCATOR] Новая запись: client={client_id}, service={service_id}, "
            f"master={'any' if any_master else master_id}, date={booking_date}, time={start_time}"
        )
        if not service_id or not booking_date or not start_time or (not any_master and not master_id):
            raise InvalidData("Missing required fields")

        now = now or now_local()
        parsed_date = parse_date(booking_date)
        start_minute = to_minutes(parse_hhmm(start_time))
        self._validate_time(parsed_date, start_minute, now)

        service = self._get_service(service_id)

        if any_master:
            master = self._select_master(service, parsed_date, start_minute)
        else:
            master = self.user_repository.get_master(master_id)
            if master is None or not master.is_active:
                raise NotFound("Master not found")

        if self.user_repository.get_by_id(client_id) is None:
            raise NotFound("Client not found")

        booking = self._commit(client_id, master, service, parsed_date, start_minute)
        admin_ids = [admin.id for admin in self.user_repository.get_active_admins()]

        master_name = master.display_name
        message = f"Booking created with {master_name}" if any_master else "Booking created successfully"
        logger.info(f"✅ [ALLOCATOR] Запись {booking.id} создана: мастер {master.id}, {parsed_date} {format_minutes(start_minute)}")

        return BookingResult(
            booking=booking,
            master_name=master_name,
            message=message,
            notifications=booking_created_events(booking, admin_ids),
        )
