"""
Каталог услуг и мастера.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import InvalidData, NotFound
from salon_booking.models import Category, Service, User, UserRole
from salon_booking.repositories import ServiceRepository, UserRepository
from salon_booking.schemas.catalog import CategoryCreate, MasterUpsert, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


def master_summary(master: User, bookings: Optional[int] = None) -> dict:
    data = {
        "id": master.id,
        "name": master.display_name,
        "telegramId": str(master.telegram_id) if master.telegram_id else None,
        "specialization": master.specialization or "Мастер",
    }
    if bookings is not None:
        data["bookings"] = bookings
    return data


class CatalogService:
    """Сервис для работы с услугами и мастерами"""

    def __init__(self, db: Session):
        self.db = db
        self.service_repository = ServiceRepository(db)
        self.user_repository = UserRepository(db)

    def list_services(self, category_id: Optional[int] = None, master_id: Optional[int] = None) -> List[dict]:
        return self.service_repository.get_catalog(category_id=category_id, master_id=master_id)

    def get_service(self, service_id: int) -> dict:
        """Услуга с мастерами, которые ее выполняют"""
        service = self.service_repository.get_with_category(service_id)
        if service is None:
            raise NotFound("Service not found")

        counts = self.user_repository.count_bookings_by_master()
        return {
            "id": service.id,
            "name": service.name,
            "description": service.description,
            "category": service.category.name if service.category else None,
            "categoryId": service.category_id,
            "price": service.price,
            "duration": service.duration_minutes,
            "isActive": service.is_active,
            "masters": [
                master_summary(m, counts.get(m.id, 0))
                for m in self.user_repository.get_masters_for_service(service_id)
            ],
        }

    def delete_service(self, service_id: int) -> None:
        """
        Мягкое удаление: услуга отключается и отвязывается от мастеров.
        Существующие записи на нее остаются.
        """
        service = self.service_repository.get_by_id(service_id)
        if service is None:
            raise NotFound("Service not found")

        service.masters = []
        service.is_active = False
        self.db.commit()
        self.service_repository.clear_cache()
        logger.info(f"🗑️ [CATALOG] Услуга {service_id} отключена")

    def list_categories(self) -> List[Category]:
        return self.service_repository.get_categories()

    def create_category(self, data: CategoryCreate) -> Category:
        if self.service_repository.get_category_by_name(data.name) is not None:
            raise InvalidData(f"Category '{data.name}' already exists")

        category = Category(name=data.name, icon=data.icon)
        self.db.add(category)
        self.db.commit()
        logger.info(f"✅ [CATALOG] Категория создана: id={category.id}, '{category.name}'")
        return category

    def create_service(self, data: ServiceCreate) -> Service:
        service = Service(
            name=data.name,
            description=data.description,
            price=data.price,
            duration_minutes=data.duration,
            is_active=True,
        )
        if data.category:
            service.category = self.service_repository.get_or_create_category(data.category)
        self.service_repository.add(service)
        self.db.commit()
        self.service_repository.clear_cache()

        logger.info(f"✅ [CATALOG] Услуга создана: id={service.id}, '{service.name}', {service.price}, {service.duration_minutes} мин")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        """
        Обновляет услугу. Цена и длительность уже созданных записей не меняются,
        в записи хранится их снимок.
        """
        service = self.service_repository.get_by_id(service_id)
        if service is None:
            raise NotFound("Service not found")

        if data.name is not None:
            service.name = data.name
        if data.description is not None:
            service.description = data.description
        if data.category is not None:
            service.category = self.service_repository.get_or_create_category(data.category)
        if data.price is not None:
            service.price = data.price
        if data.duration is not None:
            service.duration_minutes = data.duration
        if data.is_active is not None:
            service.is_active = data.is_active

        self.db.commit()
        self.service_repository.clear_cache()
        logger.info(f"✅ [CATALOG] Услуга {service_id} обновлена")
        return service

    def masters_for_service(self, service_id: int) -> List[dict]:
        if self.service_repository.get_by_id(service_id) is None:
            raise NotFound("Service not found")
        return [master_summary(m) for m in self.user_repository.get_masters_for_service(service_id)]

    def list_masters(self) -> List[dict]:
        """Активные мастера с количеством записей"""
        counts = self.user_repository.count_bookings_by_master()
        return [master_summary(m, counts.get(m.id, 0)) for m in self.user_repository.get_active_masters()]

    def services_for_master(self, master_id: int) -> List[Service]:
        if self.user_repository.get_master(master_id) is None:
            raise NotFound("Master not found")
        return self.service_repository.get_for_master(master_id)

    def _services_by_ids(self, service_ids: List[int]) -> List[Service]:
        services = self.service_repository.get_by_ids(service_ids)
        missing = set(service_ids) - {s.id for s in services}
        if missing:
            raise InvalidData(f"Unknown services: {sorted(missing)}")
        return services

    def upsert_master(self, data: MasterUpsert) -> User:
        """Создает мастера или переводит существующего пользователя (по telegramId) в роль MASTER"""
        services = self._services_by_ids(data.service_ids)

        user = None
        if data.telegram_id is not None:
            user = self.user_repository.get_by_telegram_id(data.telegram_id)

        if user is None:
            user = User(telegram_id=data.telegram_id, first_name=data.first_name)
            self.user_repository.add(user)
            logger.info(f"👤 [CATALOG] Новый мастер: {data.first_name}")
        else:
            logger.info(f"👤 [CATALOG] Пользователь {user.id} переведен в мастера")

        user.first_name = data.first_name
        user.last_name = data.last_name
        user.nickname = data.nickname
        user.specialization = data.specialization
        user.role = UserRole.MASTER
        user.is_active = True
        if data.service_ids:
            user.services = services

        self.db.commit()
        return user

    def set_master_services(self, master_id: int, service_ids: List[int]) -> User:
        """Заменяет список услуг, которые выполняет мастер"""
        master = self.user_repository.get_master(master_id)
        if master is None:
            raise NotFound("Master not found")

        master.services = self._services_by_ids(service_ids)
        self.db.commit()
        logger.info(f"✅ [CATALOG] Услуги мастера {master_id}: {sorted(service_ids)}")
        return master
