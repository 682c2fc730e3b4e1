import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon_booking.core.database import Base, get_db
from salon_booking.main import app
from salon_booking.models import Booking, BookingStatus, Service, Shift, User, UserRole
from salon_booking.repositories.service_repository import services_cache
from salon_booking.services.notification_service import Notifier, set_notifier
from salon_booking.utils.time_utils import parse_hhmm, to_minutes

# Вторник, 09:00 по времени салона
NOW = datetime(2026, 1, 20, 9, 0)
TODAY = NOW.date()
TOMORROW = date(2026, 1, 21)


class RecordingNotifier(Notifier):
    """Запоминает уведомления; для получателей из fail_for доставка не проходит"""

    def __init__(self, fail_for=(), raise_for=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    async def notify(self, recipient_id, kind, payload):
        if recipient_id in self.raise_for:
            raise ConnectionError("telegram is down")
        if recipient_id in self.fail_for:
            return False
        self.sent.append((recipient_id, kind, payload))
        return True

    def kinds_for(self, recipient_id):
        return [kind for rid, kind, _ in self.sent if rid == recipient_id]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clear_services_cache():
    services_cache.clear()
    yield
    services_cache.clear()


@pytest.fixture
def notifier():
    recording = RecordingNotifier()
    set_notifier(recording)
    yield recording
    set_notifier(None)


@pytest.fixture
def salon(db):
    """Админ, два клиента, три мастера и две услуги. Мастера A, B, C выполняют стрижку."""
    admin = User(first_name="Анна", role=UserRole.ADMIN, telegram_id=1000)
    client = User(first_name="Ольга", last_name="Петрова", role=UserRole.CLIENT, telegram_id=2000)
    other_client = User(first_name="Ирина", role=UserRole.CLIENT, telegram_id=2001)
    master_a = User(first_name="Мария", nickname="Маша", role=UserRole.MASTER, telegram_id=3001)
    master_b = User(first_name="Елена", role=UserRole.MASTER, telegram_id=3002)
    master_c = User(first_name="Светлана", role=UserRole.MASTER, telegram_id=3003)

    haircut = Service(name="Стрижка", price=1500.0, duration_minutes=60)
    manicure = Service(name="Маникюр", price=2000.0, duration_minutes=90)
    master_a.services = [haircut, manicure]
    master_b.services = [haircut]
    master_c.services = [haircut]

    db.add_all([admin, client, other_client, master_a, master_b, master_c, haircut, manicure])
    db.commit()

    return SimpleNamespace(
        admin=admin,
        client=client,
        other_client=other_client,
        master_a=master_a,
        master_b=master_b,
        master_c=master_c,
        haircut=haircut,
        manicure=manicure,
    )


@pytest.fixture
def add_shift(db):
    def _add(master, day, start="10:00", end="14:00", is_active=True):
        shift = Shift(
            master_id=master.id,
            date=day,
            start_time=parse_hhmm(start),
            end_time=parse_hhmm(end),
            is_active=is_active,
        )
        db.add(shift)
        db.commit()
        return shift
    return _add


@pytest.fixture
def add_booking(db):
    def _add(client, master, service, day, time, status=BookingStatus.CONFIRMED):
        booking = Booking(
            client_id=client.id,
            master_id=master.id,
            service_id=service.id,
            date=day,
            start_minute=to_minutes(parse_hhmm(time)),
            price=service.price,
            duration_minutes=service.duration_minutes,
            status=status,
        )
        db.add(booking)
        db.commit()
        return booking
    return _add


@pytest.fixture
def api(db, notifier):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers(user):
    return {"X-User-Id": str(user.id), "X-User-Role": user.role.value.lower()}
