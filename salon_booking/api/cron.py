import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salon_booking.api.deps import success, verify_cron_secret
from salon_booking.core.database import get_db
from salon_booking.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/reminders")
def reminders_probe():
    """Проверка доступности эндпоинта напоминаний"""
    return {
        "status": "ok",
        "message": "Reminders cron endpoint. Use POST with x-cron-secret header to trigger.",
    }


@router.post("/reminders", dependencies=[Depends(verify_cron_secret)])
async def run_reminders(db: Session = Depends(get_db)):
    """
    Запускается внешним планировщиком (cron) с заголовком X-Cron-Secret.
    Возвращает счетчики прохода: checked, sent24h, sent2h, errors.
    """
    logger.info("⏰ CRON: Запуск рассылки напоминаний")
    stats = await ReminderService(db).run()
    return success(stats.as_dict())
