from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from salon_booking.models import Booking
from salon_booking.utils.time_utils import format_minutes


class BookingCreate(BaseModel):
    """Запрос на создание записи. Обязательность полей проверяет сервис записи."""
    model_config = ConfigDict(populate_by_name=True)

    service_id: Optional[int] = Field(None, alias="serviceId")
    master_id: Optional[int] = Field(None, alias="masterId")
    date: Optional[str] = None
    time: Optional[str] = None
    any_master: bool = Field(False, alias="anyMaster")


class StatusUpdate(BaseModel):
    status: str


class BookingCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    status: str
    master_name: str = Field(alias="masterName")
    message: str


class BookingOut(BaseModel):
    """Запись в списках клиента, мастера и администратора"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    client: str
    client_id: int = Field(alias="clientId")
    master: str
    master_id: int = Field(alias="masterId")
    service: str
    service_id: int = Field(alias="serviceId")
    date: str
    time: str
    status: str
    price: float
    duration: int

    @classmethod
    def from_model(cls, booking: Booking) -> "BookingOut":
        return cls(
            id=booking.id,
            client=booking.client.display_name,
            client_id=booking.client_id,
            master=booking.master.display_name,
            master_id=booking.master_id,
            service=booking.service.name,
            service_id=booking.service_id,
            date=booking.date.isoformat(),
            time=format_minutes(booking.start_minute),
            status=booking.status.value.lower(),
            price=booking.price,
            duration=booking.duration_minutes,
        )
