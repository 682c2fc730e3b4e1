import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from salon_booking.api import admin, bookings, catalog, cron
from salon_booking.core.config import settings
from salon_booking.core.database import close_database, init_database
from salon_booking.core.exceptions import BookingError
from salon_booking.core.logging_config import log_error, setup_logging

# Получаем логгер для этого модуля
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Salon Booking",
    version="0.1.0"
)

app.include_router(bookings.router, prefix="/api", tags=["Bookings"])
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"⚠️ API: {request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error(400, "INVALID_DATA", message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_error(logger, exc, f"{request.method} {request.url.path}")
    return _error(500, "INTERNAL_ERROR", "Internal server error")


@app.on_event("startup")
async def startup_event():
    """Выполняется при запуске приложения."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_COLORS)

    logger.info("╔═══════════════════════════════════════════════════════════")
    logger.info("║ 🚀 Приложение запускается...")
    logger.info("╚═══════════════════════════════════════════════════════════")

    logger.info(f"📱 STARTUP: Telegram токен настроен: {'Да' if settings.TELEGRAM_BOT_TOKEN else 'Нет'}")
    logger.info(f"🕐 STARTUP: Часовой пояс салона: {settings.TIMEZONE}")

    try:
        init_database()
        logger.info("✅ STARTUP: База данных инициализирована")
    except Exception as e:
        logger.error(f"❌ STARTUP: Ошибка инициализации базы данных: {e}")
        raise

    logger.info("✅ STARTUP: Приложение успешно запущено и готово к работе")


@app.on_event("shutdown")
async def shutdown_event():
    close_database()
    logger.info("👋 SHUTDOWN: Соединения с базой данных закрыты")


@app.get("/health", tags=["Health Check"])
def health_check():
    """Простой эндпоинт для проверки работоспособности сервиса."""
    return {
        "status": "OK",
        "database": "enabled",
        "version": "0.1.0"
    }
