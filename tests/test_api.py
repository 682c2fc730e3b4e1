from datetime import timedelta

import pytest

from salon_booking.core.config import settings
from salon_booking.models import Booking, BookingStatus
from salon_booking.services.notification_service import NotificationKind
from salon_booking.utils.time_utils import now_local
from tests.conftest import headers


@pytest.fixture
def day():
    return now_local().date() + timedelta(days=3)


@pytest.fixture
def working_day(salon, add_shift, day):
    add_shift(salon.master_a, day, "10:00", "18:00")
    add_shift(salon.master_b, day, "10:00", "18:00")
    return day


def _book(api, salon, day, time="11:00", **extra):
    body = {"serviceId": salon.haircut.id, "masterId": salon.master_a.id, "date": day.isoformat(), "time": time}
    body.update(extra)
    return api.post("/api/bookings", json=body, headers=headers(salon.client))


def test_health(api):
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_requests_without_identity_are_rejected(api, salon):
    response = api.get("/api/bookings")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "AUTH_REQUIRED", "message": "Authentication required"},
    }


def test_unknown_role_is_rejected(api, salon):
    response = api.get("/api/bookings", headers={"X-User-Id": "1", "X-User-Role": "guest"})

    assert response.status_code == 401


def test_create_booking(api, salon, working_day, notifier):
    response = _book(api, salon, working_day)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["masterName"] == "Маша"

    assert notifier.kinds_for(salon.client.id) == [NotificationKind.BOOKING_CREATED]
    assert notifier.kinds_for(salon.master_a.id) == [NotificationKind.MASTER_NEW_BOOKING]
    assert notifier.kinds_for(salon.admin.id) == [NotificationKind.ADMIN_NEW_BOOKING]


def test_create_booking_any_master(api, salon, working_day):
    response = _book(api, salon, working_day, masterId=None, anyMaster=True)

    assert response.status_code == 200
    assert response.json()["data"]["message"].startswith("Booking created with")


def test_double_booking_returns_conflict(api, salon, working_day):
    assert _book(api, salon, working_day).status_code == 200

    response = _book(api, salon, working_day)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "TIME_SLOT_TAKEN"


def test_invalid_body_is_invalid_data(api, salon, working_day):
    response = _book(api, salon, working_day, serviceId="abc")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATA"


def test_past_date(api, salon):
    response = _book(api, salon, now_local().date() - timedelta(days=1))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATE"


def test_master_availability(api, salon, working_day, add_booking):
    add_booking(salon.client, salon.master_a, salon.haircut, working_day, "11:00")

    response = api.get(
        f"/api/masters/{salon.master_a.id}/availability",
        params={"date": working_day.isoformat(), "serviceId": salon.haircut.id},
    )

    slots = response.json()["data"]["availableSlots"]
    assert "10:00" in slots
    assert "10:30" not in slots
    assert "11:30" not in slots
    assert slots[-1] == "17:00"


def test_availability_requires_date(api, salon):
    response = api.get(f"/api/masters/{salon.master_a.id}/availability")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATA"


def test_status_flow(api, salon, working_day, notifier):
    booking_id = _book(api, salon, working_day).json()["data"]["id"]
    notifier.sent.clear()

    response = api.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"}, headers=headers(salon.master_a))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "confirmed"
    assert notifier.kinds_for(salon.client.id) == [NotificationKind.BOOKING_CONFIRMED]

    response = api.put(f"/api/bookings/{booking_id}", json={"status": "completed"}, headers=headers(salon.client))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    response = api.delete(f"/api/bookings/{booking_id}", headers=headers(salon.client))
    assert response.status_code == 200
    assert notifier.kinds_for(salon.master_a.id) == [NotificationKind.MASTER_BOOKING_CANCELLED]

    response = api.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"}, headers=headers(salon.admin))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"


def test_bookings_are_scoped_by_role(api, salon, working_day, add_booking):
    add_booking(salon.client, salon.master_a, salon.haircut, working_day, "11:00")
    add_booking(salon.other_client, salon.master_b, salon.haircut, working_day, "11:00")
    add_booking(salon.client, salon.master_b, salon.haircut, working_day, "14:00", BookingStatus.COMPLETED)

    own = api.get("/api/bookings", headers=headers(salon.client)).json()["data"]
    assert [b["masterId"] for b in own] == [salon.master_a.id]

    with_completed = api.get("/api/bookings", params={"showCompleted": "true"}, headers=headers(salon.client))
    assert [b["time"] for b in with_completed.json()["data"]] == ["14:00", "11:00"]

    assigned = api.get("/api/bookings", headers=headers(salon.master_b)).json()["data"]
    assert [b["clientId"] for b in assigned] == [salon.other_client.id]

    everything = api.get("/api/admin/bookings", headers=headers(salon.admin)).json()["data"]
    assert len(everything) == 3


def test_admin_endpoints_require_admin(api, salon):
    response = api.get("/api/admin/schedule", headers=headers(salon.master_a))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_admin_schedule(api, salon, day):
    body = {"masterId": salon.master_a.id, "date": day.isoformat(), "startTime": "09:00", "endTime": "17:00"}
    response = api.post("/api/admin/schedule", json=body, headers=headers(salon.admin))
    assert response.status_code == 200

    bulk = {
        "masterIds": [salon.master_a.id, salon.master_b.id],
        "dates": [day.isoformat()],
        "startTime": "10:00",
        "endTime": "18:00",
    }
    response = api.post("/api/admin/schedule/bulk", json=bulk, headers=headers(salon.admin))
    assert response.json()["data"]["created"] == 1
    assert response.json()["data"]["updated"] == 1

    shifts = api.get("/api/admin/schedule", headers=headers(salon.admin)).json()["data"]
    assert sorted((s["masterId"], s["startTime"]) for s in shifts) == [
        (salon.master_a.id, "10:00"),
        (salon.master_b.id, "10:00"),
    ]


def test_admin_cannot_remove_past_shift(api, salon, add_shift):
    past = now_local().date() - timedelta(days=2)
    add_shift(salon.master_a, past)

    response = api.delete(
        "/api/admin/schedule",
        params={"masterId": salon.master_a.id, "date": past.isoformat()},
        headers=headers(salon.admin),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CANNOT_MODIFY_PAST"


def test_service_price_change_keeps_booking_price(api, salon, working_day, db):
    booking_id = _book(api, salon, working_day).json()["data"]["id"]

    response = api.put(f"/api/services/{salon.haircut.id}", json={"price": 3000}, headers=headers(salon.admin))
    assert response.status_code == 200
    assert response.json()["data"]["price"] == 3000

    catalog = api.get("/api/services").json()["data"]
    assert {s["name"]: s["price"] for s in catalog}["Стрижка"] == 3000
    assert db.get(Booking, booking_id).price == 1500.0


def test_create_service_requires_admin(api, salon):
    body = {"name": "Окрашивание", "price": 4000, "duration": 120, "category": "Волосы"}

    assert api.post("/api/services", json=body, headers=headers(salon.client)).status_code == 403

    response = api.post("/api/services", json=body, headers=headers(salon.admin))
    assert response.status_code == 200
    assert response.json()["data"]["category"] == "Волосы"


def test_masters_listing_and_services(api, salon, add_booking, working_day):
    add_booking(salon.client, salon.master_a, salon.haircut, working_day, "11:00")

    masters = {m["id"]: m for m in api.get("/api/masters").json()["data"]}
    assert masters[salon.master_a.id]["bookings"] == 1
    assert masters[salon.master_b.id]["bookings"] == 0

    response = api.put(
        f"/api/masters/{salon.master_b.id}/services",
        json={"serviceIds": [salon.manicure.id]},
        headers=headers(salon.admin),
    )
    assert response.json()["data"]["serviceIds"] == [salon.manicure.id]

    haircut_masters = api.get(f"/api/services/{salon.haircut.id}/masters").json()["data"]
    assert salon.master_b.id not in [m["id"] for m in haircut_masters]


def test_cron_requires_secret(api, salon):
    response = api.post("/api/cron/reminders", headers={"X-Cron-Secret": "wrong"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_REQUIRED"


def test_cron_runs_reminders(api, salon):
    response = api.post("/api/cron/reminders", headers={"X-Cron-Secret": settings.CRON_SECRET})

    assert response.status_code == 200
    assert response.json()["data"] == {"checked": 0, "sent24h": 0, "sent2h": 0, "errors": 0}


def test_cron_probe(api):
    assert api.get("/api/cron/reminders").json()["status"] == "ok"


def test_categories(api, salon):
    assert api.get("/api/categories").json()["data"] == []

    body = {"name": "Ногти", "icon": "💅"}
    assert api.post("/api/categories", json=body, headers=headers(salon.client)).status_code == 403

    created = api.post("/api/categories", json=body, headers=headers(salon.admin))
    assert created.status_code == 200
    assert created.json()["data"]["icon"] == "💅"

    duplicate = api.post("/api/categories", json=body, headers=headers(salon.admin))
    assert duplicate.status_code == 400
    assert duplicate.json()["error"]["code"] == "INVALID_DATA"

    assert [c["name"] for c in api.get("/api/categories").json()["data"]] == ["Ногти"]


def test_services_filters(api, salon):
    body = {"name": "Окрашивание", "price": 4000, "duration": 120, "category": "Волосы"}
    category_id = api.post("/api/services", json=body, headers=headers(salon.admin)).json()["data"]["categoryId"]

    by_category = api.get("/api/services", params={"categoryId": category_id}).json()["data"]
    assert [s["name"] for s in by_category] == ["Окрашивание"]

    by_master = api.get("/api/services", params={"masterId": salon.master_b.id}).json()["data"]
    assert [s["name"] for s in by_master] == ["Стрижка"]

    everything = api.get("/api/services").json()["data"]
    assert len(everything) == 3


def test_get_service_with_masters(api, salon, add_booking, working_day):
    add_booking(salon.client, salon.master_a, salon.haircut, working_day, "11:00")

    response = api.get(f"/api/services/{salon.haircut.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Стрижка"
    assert data["duration"] == 60
    masters = {m["id"]: m["bookings"] for m in data["masters"]}
    assert masters == {salon.master_a.id: 1, salon.master_b.id: 0, salon.master_c.id: 0}

    assert api.get("/api/services/999").status_code == 404


def test_delete_service_is_soft(api, salon):
    assert api.delete(f"/api/services/{salon.manicure.id}", headers=headers(salon.master_a)).status_code == 403

    response = api.delete(f"/api/services/{salon.manicure.id}", headers=headers(salon.admin))
    assert response.status_code == 200

    catalog = api.get("/api/services").json()["data"]
    assert "Маникюр" not in [s["name"] for s in catalog]

    service = api.get(f"/api/services/{salon.manicure.id}").json()["data"]
    assert service["isActive"] is False
    assert service["masters"] == []

    assert api.delete("/api/services/999", headers=headers(salon.admin)).status_code == 404


def test_master_services_listing(api, salon):
    response = api.get(f"/api/masters/{salon.master_a.id}/services")

    assert response.status_code == 200
    assert sorted(s["name"] for s in response.json()["data"]) == ["Маникюр", "Стрижка"]

    assert api.get(f"/api/masters/{salon.client.id}/services").status_code == 404


def test_inactive_master_availability_not_found(api, salon, working_day, db):
    salon.master_a.is_active = False
    db.commit()

    response = api.get(
        f"/api/masters/{salon.master_a.id}/availability",
        params={"date": working_day.isoformat()},
    )

    assert response.status_code == 404
