"""
Услуги, мастера и свободное время.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salon_booking.api.deps import require_admin, success
from salon_booking.core.database import get_db
from salon_booking.core.exceptions import InvalidData
from salon_booking.schemas.catalog import (
    CategoryCreate,
    MasterServicesUpdate,
    MasterUpsert,
    ServiceCreate,
    ServiceUpdate,
)
from salon_booking.services.booking_policy import Actor
from salon_booking.services.catalog_service import CatalogService, master_summary
from salon_booking.services.slot_service import SlotService
from salon_booking.utils.time_utils import parse_date

router = APIRouter()


def _service_out(service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "category": service.category.name if service.category else None,
        "categoryId": service.category_id,
        "price": service.price,
        "duration": service.duration_minutes,
        "isActive": service.is_active,
    }


def _category_out(category) -> dict:
    return {"id": category.id, "name": category.name, "icon": category.icon}


def _required_date(value: Optional[str]):
    if not value:
        raise InvalidData("Date is required")
    return parse_date(value)


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return success([_category_out(c) for c in CatalogService(db).list_categories()])


@router.post("/categories")
def create_category(payload: CategoryCreate, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return success(_category_out(CatalogService(db).create_category(payload)))


@router.get("/services")
def list_services(
    categoryId: Optional[int] = None,
    masterId: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Активные услуги, можно отфильтровать по категории или мастеру"""
    return success(CatalogService(db).list_services(category_id=categoryId, master_id=masterId))


@router.post("/services")
def create_service(payload: ServiceCreate, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return success(_service_out(CatalogService(db).create_service(payload)))


@router.get("/services/{service_id}")
def get_service(service_id: int, db: Session = Depends(get_db)):
    return success(CatalogService(db).get_service(service_id))


@router.put("/services/{service_id}")
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return success(_service_out(CatalogService(db).update_service(service_id, payload)))


@router.delete("/services/{service_id}")
def delete_service(service_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    CatalogService(db).delete_service(service_id)
    return success({"message": "Service deleted"})


@router.get("/services/{service_id}/masters")
def service_masters(service_id: int, db: Session = Depends(get_db)):
    return success(CatalogService(db).masters_for_service(service_id))


@router.get("/services/{service_id}/availability")
def service_availability(service_id: int, date: Optional[str] = None, db: Session = Depends(get_db)):
    """Свободное время у любого мастера, который выполняет услугу"""
    availability = SlotService(db).get_service_availability(service_id, _required_date(date))
    return success(availability.as_dict())


@router.get("/masters")
def list_masters(db: Session = Depends(get_db)):
    return success(CatalogService(db).list_masters())


@router.post("/masters")
def upsert_master(payload: MasterUpsert, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    master = CatalogService(db).upsert_master(payload)
    return success(master_summary(master))


@router.get("/masters/{master_id}/services")
def master_services(master_id: int, db: Session = Depends(get_db)):
    services = CatalogService(db).services_for_master(master_id)
    return success([_service_out(s) for s in services])


@router.put("/masters/{master_id}/services")
def set_master_services(
    master_id: int,
    payload: MasterServicesUpdate,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    master = CatalogService(db).set_master_services(master_id, payload.service_ids)
    return success({"id": master.id, "serviceIds": sorted(s.id for s in master.services)})


@router.get("/masters/{master_id}/availability")
def master_availability(
    master_id: int,
    date: Optional[str] = None,
    serviceId: Optional[int] = None,
    db: Session = Depends(get_db),
):
    availability = SlotService(db).get_master_availability(master_id, _required_date(date), serviceId)
    return success(availability.as_dict())
