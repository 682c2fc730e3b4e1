from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, Time, UniqueConstraint
from sqlalchemy.orm import relationship

from salon_booking.core.database import Base


class Shift(Base):
    """Смена мастера на конкретную дату (не больше одной на пару мастер + дата)"""

    __tablename__ = "shifts"
    __table_args__ = (
        UniqueConstraint("master_id", "date", name="uq_shifts_master_date"),
    )

    id = Column(Integer, primary_key=True)
    master_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # Увеличивается при каждом бронировании на эту смену, блокируя строку до конца транзакции
    version = Column(Integer, nullable=False, default=0)

    master = relationship("User")
