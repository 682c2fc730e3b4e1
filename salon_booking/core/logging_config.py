"""
Логирование сервиса записи.

Сообщения пишутся с тегом компонента ("[ALLOCATOR] ...", "TELEGRAM: ...").
В терминале тег подсвечивается цветом компонента, в файлах и пайпах
остается обычная строка с уровнем и именем логгера.
"""

import logging
import re
import sys

_TAG_PATTERN = re.compile(r"^(?P<prefix>\S+\s)?(?:\[(?P<bracket>[A-Z]+)\]|(?P<colon>[A-Z]+):)")

_RESET = "\033[0m"
_DIM = "\033[2m"

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[41m",
}

# Цвета компонентов движка записи
COMPONENT_COLORS = {
    "SCHEDULE": "\033[94m",
    "SLOTS": "\033[96m",
    "ALLOCATOR": "\033[95m",
    "LIFECYCLE": "\033[93m",
    "REMINDERS": "\033[35m",
    "NOTIFY": "\033[34m",
    "TELEGRAM": "\033[34m",
    "CATALOG": "\033[92m",
    "CRON": "\033[35m",
}


def component_of(message: str) -> str:
    """Возвращает тег компонента из текста сообщения или пустую строку."""
    match = _TAG_PATTERN.match(message)
    if not match:
        return ""
    return match.group("bracket") or match.group("colon") or ""


class ComponentFormatter(logging.Formatter):
    """Цветной вывод: уровень по цвету уровня, тег по цвету компонента."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        tag = component_of(message)
        if tag in COMPONENT_COLORS:
            message = message.replace(tag, f"{COMPONENT_COLORS[tag]}{tag}{_RESET}", 1)

        level_color = LEVEL_COLORS.get(record.levelno, _RESET)
        line = (
            f"{_DIM}{self.formatTime(record, self.datefmt)}{_RESET} "
            f"{level_color}{record.levelname:<8}{_RESET} "
            f"{_DIM}{record.name}{_RESET} {message}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Настраивает корневой логгер сервиса.

    Args:
        level: Имя уровня (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Подсвечивать уровни и компоненты, если stdout это терминал
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    if enable_colors and sys.stdout.isatty():
        handler.setFormatter(ComponentFormatter(datefmt="%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)

    # Шумные библиотеки
    for name in ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"🎨 Логирование: уровень {logging.getLevelName(log_level)}, "
        f"цвета {'включены' if enable_colors else 'отключены'}"
    )


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Пишет необработанную ошибку запроса одним блоком со стеком."""
    logger.error("╔═══════════════════════════════════════════════════════════")
    logger.error(f"║ ❌ {type(error).__name__}: {error}")
    if context:
        logger.error(f"║ 📍 {context}")
    logger.error("╚═══════════════════════════════════════════════════════════", exc_info=error)
