import enum

from sqlalchemy import BigInteger, Boolean, Column, Enum, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from salon_booking.core.database import Base


class UserRole(str, enum.Enum):
    CLIENT = "CLIENT"
    MASTER = "MASTER"
    ADMIN = "ADMIN"


# Ассоциативная таблица для связи многие-ко-многим: мастер <-> услуга
master_services_association = Table(
    'master_services', Base.metadata,
    Column('master_id', Integer, ForeignKey('users.id'), primary_key=True),
    Column('service_id', Integer, ForeignKey('services.id'), primary_key=True)
)


class User(Base):
    """Пользователь салона: клиент, мастер или администратор"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    telegram_id = Column(BigInteger, nullable=True, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=True)
    nickname = Column(String(255), nullable=True)
    role = Column(Enum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.CLIENT)
    specialization = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    services = relationship(
        "Service",
        secondary=master_services_association,
        back_populates="masters"
    )

    @property
    def display_name(self) -> str:
        """Псевдоним мастера, если задан, иначе имя и фамилия"""
        if self.nickname:
            return self.nickname
        return f"{self.first_name} {self.last_name or ''}".strip()
