from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    icon: Optional[str] = Field(None, max_length=64)


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: float = Field(ge=0)
    duration: int = Field(gt=0)


class ServiceUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = Field(None, alias="isActive")


class MasterUpsert(BaseModel):
    """Добавление мастера (существующий пользователь по telegramId переводится в роль MASTER)"""
    model_config = ConfigDict(populate_by_name=True)

    telegram_id: Optional[int] = Field(None, alias="telegramId")
    first_name: str = Field(alias="firstName", min_length=1)
    last_name: Optional[str] = Field(None, alias="lastName")
    nickname: Optional[str] = None
    specialization: Optional[str] = None
    service_ids: List[int] = Field(default_factory=list, alias="serviceIds")


class MasterServicesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_ids: List[int] = Field(alias="serviceIds")
