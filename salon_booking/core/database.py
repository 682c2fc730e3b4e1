"""
Подключение к базе данных через SQLAlchemy.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from salon_booking.core.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # SQLite по умолчанию запрещает использовать соединение из другого потока,
    # а FastAPI выполняет синхронные эндпоинты в пуле потоков
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency для получения сессии базы данных.
    Используется в FastAPI endpoints для автоматического управления сессиями.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Контекстный менеджер для фоновой работы вне запроса.
    Коммитит при успехе и откатывает транзакцию при ошибке.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ DATABASE: Ошибка работы с сессией: {e}")
        raise
    finally:
        db.close()


def init_database() -> None:
    """
    Создает недостающие таблицы.
    В продакшене схемой управляют миграции Alembic.
    """
    # Импортируем модели, чтобы они зарегистрировались в metadata
    from salon_booking import models  # noqa: F401

    logger.info("🗄️ DATABASE: Инициализация базы данных...")
    Base.metadata.create_all(bind=engine)
    logger.info("✅ DATABASE: База данных успешно инициализирована")


def close_database() -> None:
    """Закрывает пул соединений."""
    engine.dispose()
    logger.info("✅ DATABASE: Соединение с базой данных закрыто")
