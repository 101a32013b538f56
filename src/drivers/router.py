from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session
from typing import List

from src.database import get_db
from src.auth.dependencies import get_current_admin_user
from src.drivers.schemas import (
    Driver, DriverCreate, DriverUpdate, DriverStatus, DriverAssignment,
    DriverReactivation, DriverStats, LicenseReconciliationResult, PhotoUploadResponse
)
from src.drivers.service import DriverService

router = APIRouter(dependencies=[Depends(get_current_admin_user)])

@router.get("/", response_model=List[Driver])
def get_drivers(db: Session = Depends(get_db)):
    """Get all drivers sorted by name"""
    return DriverService(db).list_drivers()

@router.get("/existing-contacts", response_model=List[str])
def get_existing_contact_numbers(db: Session = Depends(get_db)):
    """Contact numbers already in use, for client-side duplicate checks"""
    return DriverService(db).get_existing_contact_numbers()

@router.get("/stats", response_model=DriverStats)
def get_driver_stats(db: Session = Depends(get_db)):
    """Driver counts per status plus license expiry counts"""
    return DriverService(db).get_stats()

@router.get("/available", response_model=List[Driver])
def get_available_drivers(db: Session = Depends(get_db)):
    """Available drivers not assigned to a bus"""
    return DriverService(db).get_available_drivers()

@router.get("/expiring-licenses", response_model=List[Driver])
def get_drivers_with_expiring_licenses(db: Session = Depends(get_db)):
    """Drivers whose license expires within the warning window"""
    return DriverService(db).get_drivers_with_expiring_licenses()

@router.get("/expired", response_model=List[Driver])
def get_expired_drivers(db: Session = Depends(get_db)):
    """Drivers whose license has expired"""
    return DriverService(db).get_expired_drivers()

@router.get("/status/{availability_status}", response_model=List[Driver])
def get_drivers_by_status(availability_status: DriverStatus, db: Session = Depends(get_db)):
    """Get drivers by availability status"""
    return DriverService(db).get_drivers_by_status(availability_status)

@router.post("/", response_model=Driver, status_code=status.HTTP_201_CREATED)
def create_driver(driver: DriverCreate, db: Session = Depends(get_db)):
    """Create a new driver"""
    return DriverService(db).create_driver(driver)

@router.post("/assign", response_model=Driver)
def assign_driver_to_bus(assignment: DriverAssignment, db: Session = Depends(get_db)):
    """Assign an available driver to a bus"""
    return DriverService(db).assign_to_bus(assignment.driver_id, assignment.bus_number)

@router.post("/update-expired-licenses", response_model=LicenseReconciliationResult)
def update_expired_licenses(db: Session = Depends(get_db)):
    """Run the license-expiry sweep (safe to call repeatedly)"""
    return DriverService(db).reconcile_license_statuses()

@router.get("/{driver_id}", response_model=Driver)
def get_driver(driver_id: int, db: Session = Depends(get_db)):
    """Get driver by ID"""
    return DriverService(db).get_driver(driver_id)

@router.put("/{driver_id}", response_model=Driver)
def update_driver(driver_id: int, driver_update: DriverUpdate, db: Session = Depends(get_db)):
    """Update a driver; renewing an expired license restores the previous status"""
    return DriverService(db).update_driver(driver_id, driver_update)

@router.put("/{driver_id}/unassign", response_model=Driver)
def unassign_driver_from_bus(driver_id: int, db: Session = Depends(get_db)):
    """Release a driver from their bus"""
    return DriverService(db).unassign(driver_id)

@router.put("/{driver_id}/reactivate", response_model=Driver)
def reactivate_driver(driver_id: int, reactivation: DriverReactivation, db: Session = Depends(get_db)):
    """Reactivate a driver with a renewed license"""
    return DriverService(db).reactivate(driver_id, reactivation.license_expiry)

@router.post("/{driver_id}/upload-photo", response_model=PhotoUploadResponse)
def upload_driver_photo(
    driver_id: int,
    photo: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """Upload a profile photo"""
    driver = DriverService(db).update_photo(driver_id, photo)
    return PhotoUploadResponse(
        message="Photo uploaded successfully",
        profile_photo=driver.profile_photo,
        driver=driver
    )

@router.delete("/{driver_id}/photo", response_model=Driver)
def delete_driver_photo(driver_id: int, db: Session = Depends(get_db)):
    """Reset a driver's photo to the default avatar"""
    return DriverService(db).delete_photo(driver_id)

@router.delete("/{driver_id}")
def delete_driver(driver_id: int, db: Session = Depends(get_db)):
    """Delete a driver"""
    DriverService(db).delete_driver(driver_id)
    return {"message": "Driver deleted successfully"}
