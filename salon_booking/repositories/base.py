from typing import Any, Generic, Type, TypeVar

from sqlalchemy.orm import Session

from salon_booking.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.db = session

    def get_by_id(self, id: Any) -> ModelType | None:
        return self.db.get(self.model, id)

    def add(self, instance: ModelType) -> ModelType:
        """Добавляет запись в сессию и получает ее ID (без коммита)"""
        self.db.add(instance)
        self.db.flush()
        return instance
