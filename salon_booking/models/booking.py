import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Float, ForeignKey, Index, Integer, text
from sqlalchemy.orm import relationship

from salon_booking.core.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

_ACTIVE_STATUS_SQL = text("status IN ('PENDING', 'CONFIRMED')")


class Booking(Base):
    """Модель для хранения информации о записях клиентов"""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    master_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)  # минуты от полуночи
    # Снимок цены и длительности услуги на момент создания записи
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Enum(BookingStatus, native_enum=False, length=16), nullable=False, default=BookingStatus.PENDING)
    reminder_24h_sent = Column(Boolean, nullable=False, default=False)
    reminder_2h_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("User", foreign_keys=[client_id])
    master = relationship("User", foreign_keys=[master_id])
    service = relationship("Service")

    __table_args__ = (
        # Одна активная запись на начало слота у мастера
        Index(
            'uq_bookings_active_slot', 'master_id', 'date', 'start_minute',
            unique=True,
            sqlite_where=_ACTIVE_STATUS_SQL,
            postgresql_where=_ACTIVE_STATUS_SQL,
        ),
        Index('idx_bookings_master_date', 'master_id', 'date'),
        Index('idx_bookings_status_date', 'status', 'date'),
    )

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration_minutes
