"""
Периодическая рассылка напоминаний о подтвержденных записях.

Запускается внешним cron через POST /api/cron/reminders. Повторный запуск не дублирует
напоминания: флаг ставится условным UPDATE только после успешной отправки.
Запросы к БД выполняются в потоке через asyncio.to_thread, в цикле событий остается только отправка.
"""
import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from salon_booking.repositories import BookingRepository
from salon_booking.services.booking_events import booking_payload
from salon_booking.services.notification_service import (
    Notification,
    NotificationKind,
    Notifier,
    send_notification,
)
from salon_booking.utils.time_utils import now_local, slot_datetime

logger = logging.getLogger(__name__)

# (флаг, часов до записи в тексте, нижняя граница окна, верхняя граница окна)
REMINDER_WINDOWS = (
    ("reminder_24h_sent", 24, 23.0, 25.0),
    ("reminder_2h_sent", 2, 1.5, 2.5),
)
LOOKAHEAD_HOURS = 25


class ReminderNotDelivered(Exception):
    pass


@dataclass
class ReminderStats:
    checked: int = 0
    sent24h: int = 0
    sent2h: int = 0
    errors: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReminderCandidate:
    """Снимок записи, отвязанный от сессии"""
    booking_id: int
    client_id: int
    client_reachable: bool
    starts_at: datetime
    payload: dict
    sent: dict


class ReminderService:
    """Сервис напоминаний клиентам за 24 и за 2 часа до записи"""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.booking_repository = BookingRepository(db)
        self.notifier = notifier

    def _load_candidates(self, now: datetime) -> List[ReminderCandidate]:
        end_date = (now + timedelta(hours=LOOKAHEAD_HOURS)).date()
        bookings = self.booking_repository.get_reminder_candidates(now.date(), end_date)
        return [
            ReminderCandidate(
                booking_id=booking.id,
                client_id=booking.client_id,
                client_reachable=bool(booking.client and booking.client.telegram_id),
                starts_at=slot_datetime(booking.date, booking.start_minute),
                payload=booking_payload(booking),
                sent={flag: bool(getattr(booking, flag)) for flag, *_ in REMINDER_WINDOWS},
            )
            for booking in bookings
        ]

    def _mark_sent(self, booking_id: int, flag: str) -> bool:
        try:
            marked = self.booking_repository.mark_reminder_sent(booking_id, flag)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return marked

    async def _remind(self, candidate: ReminderCandidate, flag: str, hours_left: int) -> bool:
        """
        Отправляет одно напоминание и ставит флаг.

        Returns:
            True если напоминание отправлено и флаг поставлен этим вызовом

        Raises:
            ReminderNotDelivered: нотификатор не подтвердил доставку
        """
        payload = {**candidate.payload, "hours_left": hours_left}
        notification = Notification(candidate.client_id, NotificationKind.BOOKING_REMINDER, payload)

        if not await send_notification(notification, self.notifier):
            raise ReminderNotDelivered(
                f"{hours_left}h reminder for booking {candidate.booking_id} was not delivered"
            )

        marked = await asyncio.to_thread(self._mark_sent, candidate.booking_id, flag)
        if not marked:
            logger.warning(
                f"⚠️ [REMINDERS] Флаг {flag} записи {candidate.booking_id} уже поставлен другим запуском"
            )
        return marked

    async def run(self, now: Optional[datetime] = None) -> ReminderStats:
        """
        Один проход по подтвержденным записям на ближайшие 25 часов.

        Клиенты без telegram_id пропускаются: напоминание не отправляется,
        флаг не ставится, ошибкой это не считается.

        Args:
            now: Текущее время салона (для тестов)

        Returns:
            ReminderStats со счетчиками checked, sent24h, sent2h, errors
        """
        now = now or now_local()
        candidates = await asyncio.to_thread(self._load_candidates, now)

        stats = ReminderStats(checked=len(candidates))
        logger.info(f"⏰ [REMINDERS] Проверка напоминаний: {len(candidates)} записей, {now:%Y-%m-%d %H:%M}")

        for candidate in candidates:
            hours_until = (candidate.starts_at - now).total_seconds() / 3600

            for flag, hours_left, window_start, window_end in REMINDER_WINDOWS:
                if candidate.sent[flag] or not window_start <= hours_until <= window_end:
                    continue
                if not candidate.client_reachable:
                    logger.debug(
                        f"🔕 [REMINDERS] У клиента записи {candidate.booking_id} нет telegram_id, пропуск"
                    )
                    continue
                try:
                    if await self._remind(candidate, flag, hours_left):
                        candidate.sent[flag] = True
                        if hours_left == 24:
                            stats.sent24h += 1
                        else:
                            stats.sent2h += 1
                except Exception as e:
                    logger.error(
                        f"❌ [REMINDERS] Ошибка напоминания за {hours_left}ч для записи {candidate.booking_id}: {e}"
                    )
                    stats.errors += 1

        logger.info(
            f"✅ [REMINDERS] Проверено: {stats.checked}, за 24ч: {stats.sent24h}, "
            f"за 2ч: {stats.sent2h}, ошибок: {stats.errors}"
        )
        return stats
