from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from salon_booking.models import Shift


class ShiftUpsert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    master_id: Optional[int] = Field(None, alias="masterId")
    date: Optional[str] = None
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")


class ShiftBulkUpsert(BaseModel):
    """Одно и то же время смены для нескольких мастеров и дат"""
    model_config = ConfigDict(populate_by_name=True)

    master_ids: List[int] = Field(alias="masterIds")
    dates: List[str]
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")


class ShiftBulkDeactivate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    master_ids: List[int] = Field(alias="masterIds")
    dates: List[str]


class ShiftOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    master: str
    master_id: int = Field(alias="masterId")
    date: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    is_active: bool = Field(alias="isActive")

    @classmethod
    def from_model(cls, shift: Shift) -> "ShiftOut":
        return cls(
            id=shift.id,
            master=shift.master.display_name,
            master_id=shift.master_id,
            date=shift.date.isoformat(),
            start_time=shift.start_time.strftime("%H:%M"),
            end_time=shift.end_time.strftime("%H:%M"),
            is_active=shift.is_active,
        )
