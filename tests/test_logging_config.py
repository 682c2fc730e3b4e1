import logging

from salon_booking.core.logging_config import ComponentFormatter, component_of


def test_component_tag_in_brackets():
    assert component_of("✅ [ALLOCATOR] Запись 5 создана") == "ALLOCATOR"


def test_component_tag_with_colon():
    assert component_of("📤 TELEGRAM: Отправка сообщения в чат 1") == "TELEGRAM"


def test_message_without_tag():
    assert component_of("обычное сообщение") == ""


def test_formatter_keeps_message_text():
    record = logging.LogRecord("salon", logging.INFO, __file__, 1, "⏰ [REMINDERS] Проверка", None, None)
    line = ComponentFormatter(datefmt="%H:%M:%S").format(record)
    assert "REMINDERS" in line
    assert "Проверка" in line
    assert "INFO" in line
