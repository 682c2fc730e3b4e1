import asyncio
import logging
from typing import Callable, Optional

import httpx

from salon_booking.core.config import settings
from salon_booking.core.database import session_scope
from salon_booking.repositories import UserRepository
from salon_booking.services.notification_service import NotificationKind, Notifier
from salon_booking.services.notification_templates import render

# Получаем логгер для этого модуля
logger = logging.getLogger(__name__)


def _chat_id_from_db(user_id: int) -> Optional[int]:
    with session_scope() as db:
        user = UserRepository(db).get_by_id(user_id)
        return user.telegram_id if user else None


class TelegramService:
    def __init__(self, token: str, api_url: str = "https://api.telegram.org", timeout: float = 10.0):
        self.token = token
        self.api_url = f"{api_url}/bot{self.token}"
        self.timeout = timeout

    async def send_message(self, chat_id: int, text: str, parse_mode: str = "Markdown") -> bool:
        """Асинхронно отправляет сообщение пользователю в Telegram."""
        logger.info(f"📤 TELEGRAM: Отправка сообщения в чат {chat_id}")
        logger.debug(f"📝 TELEGRAM: Текст сообщения: '{text[:100]}...'")

        url = f"{self.api_url}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()
                if not data.get("ok", False):
                    logger.error(f"❌ TELEGRAM: Ошибка API: {data.get('description')}")
                    return False
                logger.info("✅ TELEGRAM: Сообщение отправлено успешно")
                return True
            except httpx.HTTPStatusError as e:
                logger.error(f"❌ TELEGRAM: HTTP ошибка отправки сообщения: {e.response.status_code}")
                logger.error(f"❌ TELEGRAM: Ответ сервера: {e.response.text}")
                return False
            except httpx.HTTPError as e:
                logger.error(f"❌ TELEGRAM: Сетевая ошибка отправки: {e}")
                return False


class TelegramNotifier(Notifier):
    """
    Доставляет уведомления о записях через Telegram Bot API.
    Получатель задается ID пользователя, чат определяется по его telegram_id.
    """

    def __init__(
        self,
        token: str,
        resolve_chat_id: Callable[[int], Optional[int]] = _chat_id_from_db,
        service: Optional[TelegramService] = None,
    ):
        self.telegram = service or TelegramService(
            token=token,
            api_url=settings.TELEGRAM_API_URL,
            timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        )
        self.resolve_chat_id = resolve_chat_id

    async def notify(self, recipient_id: int, kind: NotificationKind, payload: dict) -> bool:
        chat_id = await asyncio.to_thread(self.resolve_chat_id, recipient_id)
        if not chat_id:
            logger.warning(f"⚠️ TELEGRAM: У пользователя {recipient_id} нет telegram_id, {kind.value} пропущено")
            return False
        return await self.telegram.send_message(chat_id, render(kind, payload))
