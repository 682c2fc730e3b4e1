import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Определяем, какой .env файл загружать
env_file_path = os.getenv("ENV_FILE", ".env")
load_dotenv(env_file_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=env_file_path,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Database
    DATABASE_URL: str = "sqlite:///./salon_booking.db"

    # Telegram Bot (без токена уведомления только пишутся в лог)
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_API_URL: str = "https://api.telegram.org"

    # Секрет для внешнего планировщика напоминаний
    CRON_SECRET: str = "default-cron-secret"

    # Правила записи
    TIMEZONE: str = "Europe/Moscow"
    SLOT_INTERVAL_MINUTES: int = 30
    BOOKING_BUFFER_MINUTES: int = 30
    DEFAULT_SERVICE_DURATION_MINUTES: int = 60

    NOTIFIER_TIMEOUT_SECONDS: float = 10.0

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_COLORS: bool = True


# Глобальная переменная для ленивой инициализации
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Получить или создать экземпляр настроек"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
