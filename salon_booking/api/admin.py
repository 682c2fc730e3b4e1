"""
Админские эндпоинты: смены мастеров и все записи салона.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salon_booking.api.deps import require_admin, success
from salon_booking.core.database import get_db
from salon_booking.core.exceptions import InvalidData
from salon_booking.schemas.booking import BookingOut
from salon_booking.schemas.schedule import ShiftBulkDeactivate, ShiftBulkUpsert, ShiftOut, ShiftUpsert
from salon_booking.services.booking_query_service import BookingQueryService
from salon_booking.services.schedule_service import ScheduleService
from salon_booking.utils.time_utils import parse_date, parse_hhmm

router = APIRouter(dependencies=[Depends(require_admin)])


def _optional_date(value: Optional[str]):
    return parse_date(value) if value else None


@router.get("/schedule")
def list_schedule(
    masterId: Optional[int] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    db: Session = Depends(get_db),
):
    shifts = ScheduleService(db).list_shifts(masterId, _optional_date(startDate), _optional_date(endDate))
    return success([ShiftOut.from_model(s).model_dump(by_alias=True) for s in shifts])


@router.post("/schedule")
def upsert_shift(payload: ShiftUpsert, db: Session = Depends(get_db)):
    if not payload.master_id or not payload.date or not payload.start_time or not payload.end_time:
        raise InvalidData("Missing required fields")

    shift = ScheduleService(db).upsert_shift(
        payload.master_id,
        parse_date(payload.date),
        parse_hhmm(payload.start_time),
        parse_hhmm(payload.end_time),
    )
    return success(ShiftOut.from_model(shift).model_dump(by_alias=True))


@router.post("/schedule/bulk")
def bulk_upsert_shifts(payload: ShiftBulkUpsert, db: Session = Depends(get_db)):
    result = ScheduleService(db).bulk_upsert(
        payload.master_ids,
        [parse_date(d) for d in payload.dates],
        parse_hhmm(payload.start_time),
        parse_hhmm(payload.end_time),
    )
    return success(result.as_dict())


@router.delete("/schedule")
def deactivate_shift(masterId: int, date: str, db: Session = Depends(get_db)):
    shift = ScheduleService(db).deactivate_shift(masterId, parse_date(date))
    return success(ShiftOut.from_model(shift).model_dump(by_alias=True))


@router.post("/schedule/bulk-deactivate")
def bulk_deactivate_shifts(payload: ShiftBulkDeactivate, db: Session = Depends(get_db)):
    result = ScheduleService(db).bulk_deactivate(payload.master_ids, [parse_date(d) for d in payload.dates])
    return success(result.as_dict())


@router.get("/bookings")
def list_all_bookings(
    masterId: Optional[int] = None,
    status: Optional[str] = None,
    date: Optional[str] = None,
    db: Session = Depends(get_db),
):
    bookings = BookingQueryService(db).list_for_admin(masterId, status, _optional_date(date))
    return success([BookingOut.from_model(b).model_dump(by_alias=True) for b in bookings])
