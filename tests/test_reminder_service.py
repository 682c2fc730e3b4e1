import threading
from datetime import datetime

import pytest

from salon_booking.models import Booking, BookingStatus
from salon_booking.repositories import BookingRepository
from salon_booking.services.notification_service import NotificationKind
from salon_booking.services.reminder_service import ReminderService
from tests.conftest import RecordingNotifier, TODAY, TOMORROW

NOW = datetime(2026, 1, 20, 10, 0)


@pytest.mark.asyncio
async def test_24h_reminder_is_sent_once(db, salon, add_booking):
    booking = add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00")
    notifier = RecordingNotifier()
    service = ReminderService(db, notifier=notifier)

    first = await service.run(now=NOW)
    second = await service.run(now=NOW)

    assert first.as_dict() == {"checked": 1, "sent24h": 1, "sent2h": 0, "errors": 0}
    assert second.sent24h == 0
    assert len(notifier.sent) == 1

    recipient, kind, payload = notifier.sent[0]
    assert recipient == salon.client.id
    assert kind == NotificationKind.BOOKING_REMINDER
    assert payload["hours_left"] == 24
    assert payload["time"] == "10:00"

    db.refresh(booking)
    assert booking.reminder_24h_sent is True
    assert booking.reminder_2h_sent is False


@pytest.mark.asyncio
async def test_2h_reminder(db, salon, add_booking):
    booking = add_booking(salon.client, salon.master_a, salon.haircut, TODAY, "12:00")
    notifier = RecordingNotifier()

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.sent2h == 1
    assert stats.sent24h == 0
    assert notifier.sent[0][2]["hours_left"] == 2
    db.refresh(booking)
    assert booking.reminder_2h_sent is True


@pytest.mark.parametrize(
    "time, sent",
    [
        ("09:00", 1),  # 23.0 часа
        ("11:00", 1),  # 25.0 часов
        ("08:30", 0),  # 22.5 часа
    ],
)
@pytest.mark.asyncio
async def test_24h_window_bounds(db, salon, add_booking, time, sent):
    add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, time)

    stats = await ReminderService(db, notifier=RecordingNotifier()).run(now=NOW)

    assert stats.sent24h == sent


@pytest.mark.asyncio
async def test_only_confirmed_bookings_are_checked(db, salon, add_booking):
    add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00", BookingStatus.PENDING)
    add_booking(salon.client, salon.master_b, salon.haircut, TOMORROW, "10:00", BookingStatus.CANCELLED)
    notifier = RecordingNotifier()

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.checked == 0
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_bookings_with_both_flags_are_skipped(db, salon, add_booking):
    booking = add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00")
    booking.reminder_24h_sent = True
    booking.reminder_2h_sent = True
    db.commit()

    stats = await ReminderService(db, notifier=RecordingNotifier()).run(now=NOW)

    assert stats.checked == 0


@pytest.mark.asyncio
async def test_booking_outside_windows_is_checked_but_not_reminded(db, salon, add_booking):
    add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "14:00")
    notifier = RecordingNotifier()

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.as_dict() == {"checked": 1, "sent24h": 0, "sent2h": 0, "errors": 0}
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_failure_is_counted_and_retried_next_run(db, salon, add_booking):
    failed = add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00")
    add_booking(salon.other_client, salon.master_b, salon.haircut, TOMORROW, "10:00")
    notifier = RecordingNotifier(fail_for={salon.client.id})

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.errors == 1
    assert stats.sent24h == 1
    db.refresh(failed)
    assert failed.reminder_24h_sent is False

    notifier.fail_for.clear()
    retry = await ReminderService(db, notifier=notifier).run(now=NOW)
    assert retry.sent24h == 1
    assert retry.errors == 0


@pytest.mark.asyncio
async def test_notifier_exception_does_not_stop_the_run(db, salon, add_booking):
    add_booking(salon.client, salon.master_a, salon.haircut, TODAY, "12:00")
    add_booking(salon.other_client, salon.master_b, salon.haircut, TODAY, "12:00")
    notifier = RecordingNotifier(raise_for={salon.client.id})

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.errors == 1
    assert stats.sent2h == 1
    sent = db.query(Booking).filter(Booking.reminder_2h_sent.is_(True)).all()
    assert [b.client_id for b in sent] == [salon.other_client.id]


@pytest.mark.asyncio
async def test_client_without_telegram_is_skipped_silently(db, salon, add_booking):
    booking = add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00")
    salon.client.telegram_id = None
    db.commit()
    notifier = RecordingNotifier()

    stats = await ReminderService(db, notifier=notifier).run(now=NOW)

    assert stats.as_dict() == {"checked": 1, "sent24h": 0, "sent2h": 0, "errors": 0}
    assert notifier.sent == []
    db.refresh(booking)
    assert booking.reminder_24h_sent is False


@pytest.mark.asyncio
async def test_database_work_runs_off_the_event_loop(db, salon, add_booking, monkeypatch):
    add_booking(salon.client, salon.master_a, salon.haircut, TOMORROW, "10:00")
    loop_thread = threading.get_ident()
    db_threads = []

    original_candidates = BookingRepository.get_reminder_candidates
    original_mark = BookingRepository.mark_reminder_sent

    def candidates(self, *args):
        db_threads.append(threading.get_ident())
        return original_candidates(self, *args)

    def mark(self, *args):
        db_threads.append(threading.get_ident())
        return original_mark(self, *args)

    monkeypatch.setattr(BookingRepository, "get_reminder_candidates", candidates)
    monkeypatch.setattr(BookingRepository, "mark_reminder_sent", mark)

    stats = await ReminderService(db, notifier=RecordingNotifier()).run(now=NOW)

    assert stats.sent24h == 1
    assert len(db_threads) == 2
    assert loop_thread not in db_threads
