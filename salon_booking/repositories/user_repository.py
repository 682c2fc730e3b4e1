"""
Репозиторий для работы с пользователями и мастерами
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from salon_booking.models import Booking, Service, User, UserRole
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Репозиторий для работы с пользователями"""

    def __init__(self, session: Session):
        super().__init__(User, session)

    def get_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.telegram_id == telegram_id).first()

    def get_master(self, master_id: int) -> Optional[User]:
        """Находит мастера по ID (пользователи с другими ролями не считаются мастерами)"""
        return (
            self.db.query(User)
            .filter(User.id == master_id, User.role == UserRole.MASTER)
            .first()
        )

    def get_active_masters(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.MASTER, User.is_active.is_(True))
            .order_by(User.first_name)
            .all()
        )

    def get_masters_for_service(self, service_id: int) -> List[User]:
        """Находит всех активных мастеров, которые выполняют указанную услугу"""
        return (
            self.db.query(User)
            .join(User.services)
            .filter(
                Service.id == service_id,
                User.role == UserRole.MASTER,
                User.is_active.is_(True),
            )
            .order_by(User.id)
            .all()
        )

    def count_bookings_by_master(self) -> dict[int, int]:
        """Количество записей у каждого мастера за все время"""
        rows = (
            self.db.query(Booking.master_id, func.count(Booking.id))
            .group_by(Booking.master_id)
            .all()
        )
        return {master_id: count for master_id, count in rows}

    def get_active_admins(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.ADMIN, User.is_active.is_(True))
            .all()
        )
