import io
import os
from datetime import datetime, timedelta

import pytest
from fastapi import UploadFile
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

from src.config import settings
from src.drivers.service import DriverService
from src.drivers.storage import PhotoStorage
from src.models import Driver

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

def future(days=365):
    return (datetime.now() + timedelta(days=days)).isoformat()

def driver_payload(**overrides):
    payload = {
        "full_name": "Suresh Kumar",
        "license_number": "gj07dl8932",
        "license_expiry": future(),
        "contact_number": "9123456780",
        "address": "45 Ring Road, Surat, Gujarat",
        "availability_status": "Available",
        "experience": 6,
    }
    payload.update(overrides)
    return payload

# ---------------------------------------------------------------------
# Creation & validation
# ---------------------------------------------------------------------
def test_create_driver_normalizes_license_number(client, admin_headers):
    response = client.post("/api/drivers/", json=driver_payload(), headers=admin_headers)
    
    assert response.status_code == 201
    data = response.json()
    assert data["license_number"] == "GJ07DL8932"
    assert data["availability_status"] == "Available"
    assert data["previous_status"] == "Available"
    assert data["is_active"] is True
    assert data["license_expiry_warning"] is False
    assert data["profile_photo"] == settings.DEFAULT_PROFILE_PHOTO

def test_create_driver_with_expiring_license_sets_warning(client, admin_headers):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(license_expiry=future(days=10)),
        headers=admin_headers
    )
    
    assert response.status_code == 201
    assert response.json()["license_expiry_warning"] is True
    assert response.json()["is_license_expiring_soon"] is True

@pytest.mark.parametrize("license_number", ["GJ07", "GJ07-DL-8932", "ABCDEFGHIJKLMNOPQ"])
def test_create_driver_rejects_bad_license_number(client, admin_headers, license_number):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(license_number=license_number),
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_create_driver_rejects_bad_contact_number(client, admin_headers):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(contact_number="12345"),
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_create_driver_rejects_past_expiry(client, admin_headers):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(license_expiry=future(days=-5)),
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_create_driver_rejects_inactive_status(client, admin_headers):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(availability_status="Inactive"),
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_create_driver_rejects_underage_driver(client, admin_headers):
    response = client.post(
        "/api/drivers/",
        json=driver_payload(date_of_birth=(datetime.now() - timedelta(days=365 * 16)).isoformat()),
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_duplicate_license_and_contact_are_rejected(client, admin_headers, make_driver):
    existing = make_driver()
    
    response = client.post(
        "/api/drivers/",
        json=driver_payload(license_number=existing.license_number),
        headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Driver with this license number already exists"
    
    response = client.post(
        "/api/drivers/",
        json=driver_payload(contact_number=existing.contact_number),
        headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Driver with this contact number already exists"

def test_emergency_contact_round_trip(client, admin_headers):
    contact = {"name": "Meena Kumar", "phone": "9988776655", "relationship": "Spouse"}
    response = client.post(
        "/api/drivers/",
        json=driver_payload(emergency_contact=contact),
        headers=admin_headers
    )
    driver_id = response.json()["id"]
    assert response.json()["emergency_contact"] == contact
    
    response = client.put(
        f"/api/drivers/{driver_id}",
        json={"emergency_contact": None},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["emergency_contact"] is None

# ---------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------
def test_driver_routes_require_admin(client, customer_headers):
    assert client.get("/api/drivers/").status_code == 401
    assert client.get("/api/drivers/", headers=customer_headers).status_code == 403

def test_update_rejects_null_status(client, admin_headers, make_driver):
    driver = make_driver()
    
    response = client.put(
        f"/api/drivers/{driver.id}",
        json={"availability_status": None},
        headers=admin_headers
    )
    
    assert response.status_code == 400
    assert response.json()["detail"] == "availability_status cannot be empty"
    assert client.get(f"/api/drivers/{driver.id}", headers=admin_headers).json()["availability_status"] == "Available"

def test_unknown_driver_returns_404(client, admin_headers):
    assert client.get("/api/drivers/999", headers=admin_headers).status_code == 404
    assert client.put("/api/drivers/999", json={"full_name": "Nobody Here"}, headers=admin_headers).status_code == 404

# ---------------------------------------------------------------------
# License expiry lifecycle
# ---------------------------------------------------------------------
def test_sweep_deactivates_expired_driver(db_session, make_driver):
    driver = make_driver(license_expiry=datetime.now() - timedelta(days=1))
    
    result = DriverService(db_session).reconcile_license_statuses()
    db_session.refresh(driver)
    
    assert result.deactivated == 1
    assert result.expired == 1
    assert driver.availability_status == "Inactive"
    assert driver.previous_status == "Available"
    assert driver.is_active is False

def test_sweep_is_idempotent(db_session, make_driver):
    make_driver(license_expiry=datetime.now() - timedelta(days=1), availability_status="Busy", previous_status="Busy")
    make_driver(license_expiry=datetime.now() + timedelta(days=7))
    make_driver(license_expiry=datetime.now() + timedelta(days=200))
    service = DriverService(db_session)
    now = datetime.now()
    
    first = service.reconcile_license_statuses(now)
    rows = [
        (d.availability_status, d.previous_status, d.is_active, d.license_expiry_warning, d.last_status_update)
        for d in db_session.query(Driver).order_by(Driver.id)
    ]
    second = service.reconcile_license_statuses(now)
    rows_again = [
        (d.availability_status, d.previous_status, d.is_active, d.license_expiry_warning, d.last_status_update)
        for d in db_session.query(Driver).order_by(Driver.id)
    ]
    
    assert (first.deactivated, first.expiring, first.expired) == (1, 1, 1)
    assert (second.deactivated, second.restored) == (0, 0)
    assert rows == rows_again
    assert rows[0][:2] == ("Inactive", "Busy")

def test_sweep_restores_renewed_driver(db_session, make_driver):
    driver = make_driver(
        availability_status="Inactive",
        previous_status="Suspended",
        is_active=False,
        license_expiry=datetime.now() + timedelta(days=200)
    )
    
    result = DriverService(db_session).reconcile_license_statuses()
    db_session.refresh(driver)
    
    assert result.restored == 1
    assert result.deactivated == 0
    assert driver.availability_status == "Suspended"
    assert driver.is_active is True

def test_sweep_endpoint(client, admin_headers, make_driver):
    make_driver(license_expiry=datetime.now() - timedelta(days=2))
    
    response = client.post("/api/drivers/update-expired-licenses", headers=admin_headers)
    
    assert response.status_code == 200
    assert response.json()["deactivated"] == 1

def test_license_renewal_restores_exact_previous_status(client, admin_headers, db_session, make_driver):
    driver = make_driver(
        license_expiry=datetime.now() - timedelta(days=1),
        availability_status="On Leave",
        previous_status="On Leave"
    )
    DriverService(db_session).reconcile_license_statuses()
    
    response = client.put(
        f"/api/drivers/{driver.id}",
        json={"license_expiry": future(days=400)},
        headers=admin_headers
    )
    
    assert response.status_code == 200
    data = response.json()
    assert data["availability_status"] == "On Leave"
    assert data["is_active"] is True
    assert data["license_expiry_warning"] is False

def test_update_never_leaves_expired_driver_active(client, admin_headers, make_driver):
    driver = make_driver(license_expiry=datetime.now() - timedelta(days=3))
    
    response = client.put(
        f"/api/drivers/{driver.id}",
        json={"address": "99 New Market Street, Vadodara"},
        headers=admin_headers
    )
    
    assert response.json()["availability_status"] == "Inactive"
    assert response.json()["is_active"] is False

def test_expired_and_expiring_lists(client, admin_headers, make_driver):
    expired = make_driver(license_expiry=datetime.now() - timedelta(days=1))
    expiring = make_driver(license_expiry=datetime.now() + timedelta(days=5))
    make_driver(license_expiry=datetime.now() + timedelta(days=300))
    
    expired_ids = [d["id"] for d in client.get("/api/drivers/expired", headers=admin_headers).json()]
    expiring_ids = [d["id"] for d in client.get("/api/drivers/expiring-licenses", headers=admin_headers).json()]
    
    assert expired_ids == [expired.id]
    assert expiring_ids == [expiring.id]

def test_stats(client, admin_headers, make_driver):
    make_driver()
    make_driver(availability_status="Busy")
    make_driver(availability_status="On Leave", license_expiry=datetime.now() + timedelta(days=3))
    
    stats = client.get("/api/drivers/stats", headers=admin_headers).json()
    
    assert stats["total_drivers"] == 3
    assert stats["available_drivers"] == 1
    assert stats["busy_drivers"] == 1
    assert stats["on_leave_drivers"] == 1
    assert stats["expiring_licenses"] == 1
    assert stats["expired_licenses"] == 0

def test_drivers_by_status_and_existing_contacts(client, admin_headers, make_driver):
    busy = make_driver(availability_status="Busy")
    make_driver()
    
    by_status = client.get("/api/drivers/status/Busy", headers=admin_headers).json()
    contacts = client.get("/api/drivers/existing-contacts", headers=admin_headers).json()
    
    assert [d["id"] for d in by_status] == [busy.id]
    assert busy.contact_number in contacts
    assert len(contacts) == 2

# ---------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------
def test_assign_and_unassign(client, admin_headers, make_driver, make_bus):
    driver = make_driver()
    bus = make_bus()
    
    response = client.post(
        "/api/drivers/assign",
        json={"driver_id": driver.id, "bus_number": bus.bus_number},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["availability_status"] == "Busy"
    assert response.json()["assigned_bus"] == bus.bus_number
    
    available = client.get("/api/drivers/available", headers=admin_headers).json()
    assert driver.id not in [d["id"] for d in available]
    
    response = client.put(f"/api/drivers/{driver.id}/unassign", headers=admin_headers)
    assert response.json()["availability_status"] == "Available"
    assert response.json()["assigned_bus"] == ""

def test_assign_busy_driver_conflicts(client, admin_headers, make_driver, make_bus):
    driver = make_driver(availability_status="Busy")
    bus = make_bus()
    
    response = client.post(
        "/api/drivers/assign",
        json={"driver_id": driver.id, "bus_number": bus.bus_number},
        headers=admin_headers
    )
    
    assert response.status_code == 409

def test_assign_unknown_bus_returns_404(client, admin_headers, make_driver):
    driver = make_driver()
    
    response = client.post(
        "/api/drivers/assign",
        json={"driver_id": driver.id, "bus_number": "NOPE-1"},
        headers=admin_headers
    )
    
    assert response.status_code == 404

def test_assign_rejects_unswept_expired_driver(client, admin_headers, make_driver, make_bus):
    driver = make_driver(license_expiry=datetime.now() - timedelta(hours=1))
    bus = make_bus()
    
    response = client.post(
        "/api/drivers/assign",
        json={"driver_id": driver.id, "bus_number": bus.bus_number},
        headers=admin_headers
    )
    
    assert response.status_code == 409
    assert client.get(f"/api/drivers/{driver.id}", headers=admin_headers).json()["availability_status"] == "Inactive"

def test_unassign_forces_available_even_when_expired(client, admin_headers, db_session, make_driver):
    driver = make_driver(
        license_expiry=datetime.now() - timedelta(days=1),
        availability_status="Busy",
        previous_status="Busy",
        assigned_bus="BUS-001"
    )
    DriverService(db_session).reconcile_license_statuses()
    
    response = client.put(f"/api/drivers/{driver.id}/unassign", headers=admin_headers)
    assert response.json()["availability_status"] == "Available"
    
    client.post("/api/drivers/update-expired-licenses", headers=admin_headers)
    refreshed = client.get(f"/api/drivers/{driver.id}", headers=admin_headers).json()
    assert refreshed["availability_status"] == "Inactive"
    assert refreshed["previous_status"] == "Available"

# ---------------------------------------------------------------------
# Reactivation
# ---------------------------------------------------------------------
def test_reactivate_requires_future_expiry(client, admin_headers, make_driver):
    driver = make_driver(license_expiry=datetime.now() - timedelta(days=1))
    
    response = client.put(
        f"/api/drivers/{driver.id}/reactivate",
        json={"license_expiry": future(days=-1)},
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_reactivate_sets_available(client, admin_headers, db_session, make_driver):
    driver = make_driver(
        license_expiry=datetime.now() - timedelta(days=1),
        availability_status="Suspended",
        previous_status="Suspended"
    )
    DriverService(db_session).reconcile_license_statuses()
    
    response = client.put(
        f"/api/drivers/{driver.id}/reactivate",
        json={"license_expiry": future(days=500)},
        headers=admin_headers
    )
    
    assert response.status_code == 200
    data = response.json()
    assert data["availability_status"] == "Available"
    assert data["is_active"] is True
    assert data["license_expiry_warning"] is False
    assert data["is_license_expired"] is False

# ---------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------
def test_upload_and_delete_photo(client, admin_headers, make_driver):
    driver = make_driver()
    storage = PhotoStorage()
    
    response = client.post(
        f"/api/drivers/{driver.id}/upload-photo",
        files={"photo": ("face.png", PNG_BYTES, "image/png")},
        headers=admin_headers
    )
    assert response.status_code == 200
    first = response.json()["profile_photo"]
    assert first.startswith("/uploads/drivers/")
    first_path = os.path.join(storage.photo_dir, os.path.basename(first))
    assert os.path.exists(first_path)
    
    response = client.post(
        f"/api/drivers/{driver.id}/upload-photo",
        files={"photo": ("face2.png", PNG_BYTES, "image/png")},
        headers=admin_headers
    )
    second = response.json()["profile_photo"]
    assert second != first
    assert not os.path.exists(first_path)
    
    response = client.delete(f"/api/drivers/{driver.id}/photo", headers=admin_headers)
    assert response.json()["profile_photo"] == settings.DEFAULT_PROFILE_PHOTO
    assert not os.path.exists(os.path.join(storage.photo_dir, os.path.basename(second)))

def test_upload_rejects_non_image(client, admin_headers, make_driver):
    driver = make_driver()
    
    response = client.post(
        f"/api/drivers/{driver.id}/upload-photo",
        files={"photo": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers
    )
    
    assert response.status_code == 400

def test_storage_leaves_foreign_urls_alone(tmp_path):
    storage = PhotoStorage(upload_dir=str(tmp_path), url_prefix="/uploads")
    
    assert storage.delete(settings.DEFAULT_PROFILE_PHOTO) is False
    assert storage.delete(None) is False
    assert storage.is_managed("/uploads/drivers/driver-1-abc.png") is True

def test_delete_driver(client, admin_headers, make_driver):
    driver = make_driver()
    
    assert client.delete(f"/api/drivers/{driver.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/drivers/{driver.id}", headers=admin_headers).status_code == 404

def test_failed_photo_commit_removes_new_file(db_session, make_driver, monkeypatch, tmp_path):
    driver = make_driver()
    storage = PhotoStorage(upload_dir=str(tmp_path), url_prefix="/uploads")
    service = DriverService(db_session, storage=storage)
    photo = UploadFile(
        file=io.BytesIO(PNG_BYTES),
        filename="face.png",
        headers=Headers({"content-type": "image/png"})
    )
    
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))
    monkeypatch.setattr(db_session, "commit", failing_commit)
    
    with pytest.raises(OperationalError):
        service.update_photo(driver.id, photo)
    
    assert os.listdir(storage.photo_dir) == []
