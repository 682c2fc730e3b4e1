"""
Репозиторий для работы с услугами и категориями
"""

from typing import List, Optional

from cachetools import TTLCache
from sqlalchemy.orm import Session, joinedload

from salon_booking.models import Category, Service, User
from .base import BaseRepository

# Кэш для каталога услуг, живет 10 минут (600 секунд)
services_cache = TTLCache(maxsize=1, ttl=600)


def _catalog_item(service: Service) -> dict:
    return {
        'id': service.id,
        'name': service.name,
        'description': service.description,
        'category': service.category.name if service.category else None,
        'categoryId': service.category_id,
        'price': service.price,
        'duration': service.duration_minutes,
    }


class ServiceRepository(BaseRepository[Service]):
    """Репозиторий для работы с услугами"""

    def __init__(self, session: Session):
        super().__init__(Service, session)

    def get_catalog(self, category_id: Optional[int] = None, master_id: Optional[int] = None) -> List[dict]:
        """
        Возвращает каталог активных услуг.
        Полный каталог кэшируется, выборки по категории или мастеру идут в БД.
        Цена для новой записи всегда берется из БД через get_by_id, а не из кэша.
        """
        filtered = category_id is not None or master_id is not None
        if not filtered and 'catalog' in services_cache:
            return services_cache['catalog']

        query = (
            self.db.query(Service)
            .options(joinedload(Service.category))
            .filter(Service.is_active.is_(True))
        )
        if category_id is not None:
            query = query.filter(Service.category_id == category_id)
        if master_id is not None:
            query = query.filter(Service.masters.any(User.id == master_id))

        catalog = [_catalog_item(s) for s in query.order_by(Service.name).all()]
        if not filtered:
            services_cache['catalog'] = catalog
        return catalog

    def get_with_category(self, service_id: int) -> Optional[Service]:
        return (
            self.db.query(Service)
            .options(joinedload(Service.category))
            .filter(Service.id == service_id)
            .first()
        )

    def get_for_master(self, master_id: int) -> List[Service]:
        """Услуги, которые выполняет мастер (включая отключенные)"""
        return (
            self.db.query(Service)
            .options(joinedload(Service.category))
            .filter(Service.masters.any(User.id == master_id))
            .order_by(Service.name)
            .all()
        )

    def clear_cache(self) -> None:
        """Очищает кэш услуг"""
        services_cache.clear()

    def get_categories(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.name).all()

    def get_category_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def get_or_create_category(self, name: str) -> Category:
        category = self.get_category_by_name(name)
        if category is None:
            category = Category(name=name)
            self.db.add(category)
            self.db.flush()
        return category

    def get_by_ids(self, service_ids: List[int]) -> List[Service]:
        if not service_ids:
            return []
        return self.db.query(Service).filter(Service.id.in_(service_ids)).all()
