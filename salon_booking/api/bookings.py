import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from salon_booking.api.deps import enqueue_notifications, get_actor, success
from salon_booking.core.database import get_db
from salon_booking.core.exceptions import InvalidData
from salon_booking.schemas.booking import BookingCreate, BookingCreated, BookingOut, StatusUpdate
from salon_booking.services.booking_policy import Actor
from salon_booking.services.booking_query_service import BookingQueryService
from salon_booking.services.booking_service import BookingService
from salon_booking.services.lifecycle_service import LifecycleService
from salon_booking.utils.time_utils import parse_date

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/bookings")
def list_bookings(
    status: Optional[str] = None,
    showCompleted: bool = False,
    fromDate: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Записи текущего пользователя (для администратора - все записи)"""
    from_date = parse_date(fromDate) if fromDate else None
    bookings = BookingQueryService(db).list_for_actor(actor, status, showCompleted, from_date)
    return success([BookingOut.from_model(b).model_dump(by_alias=True) for b in bookings])


@router.post("/bookings")
def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Создает запись. При anyMaster=true мастер выбирается автоматически
    среди свободных с наименьшей загрузкой.
    """
    result = BookingService(db).create_booking(
        client_id=actor.id,
        service_id=payload.service_id,
        booking_date=payload.date,
        start_time=payload.time,
        master_id=payload.master_id,
        any_master=payload.any_master,
    )
    enqueue_notifications(background_tasks, result.notifications)

    created = BookingCreated(
        id=result.booking.id,
        status=result.booking.status.value.lower(),
        master_name=result.master_name,
        message=result.message,
    )
    return success(created.model_dump(by_alias=True))


@router.put("/bookings/{booking_id}")
def update_booking_status(
    booking_id: int,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    if not payload.status:
        raise InvalidData("Status is required")

    result = LifecycleService(db).change_status(booking_id, actor, payload.status)
    enqueue_notifications(background_tasks, result.notifications)

    status = result.booking.status.value.lower()
    return success({"id": result.booking.id, "status": status, "message": f"Booking {status}"})


@router.delete("/bookings/{booking_id}")
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    result = LifecycleService(db).cancel(booking_id, actor)
    enqueue_notifications(background_tasks, result.notifications)
    return success({"id": result.booking.id, "message": "Booking cancelled"})
