import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config import settings
from src.drivers.lifecycle import LicenseTransition, apply_license_rules
from src.drivers.schemas import (
    LICENSE_NUMBER_MESSAGE, LICENSE_NUMBER_PATTERN, DriverCreate, DriverStats,
    DriverStatus, DriverUpdate, EmergencyContact, LicenseReconciliationResult
)
from src.drivers.storage import PhotoStorage, photo_storage
from src.exceptions import Conflict, NotFound, ValidationError
from src.models import Bus, Driver
from src.utils import naive_local

logger = logging.getLogger(__name__)

UNIQUE_FIELD_MESSAGES = {
    "license_number": "Driver with this license number already exists",
    "contact_number": "Driver with this contact number already exists",
}

class DriverService:
    """Driver records and the license-expiry lifecycle"""
    
    def __init__(self, db: Session, storage: Optional[PhotoStorage] = None):
        self.db = db
        self.storage = storage or photo_storage
    
    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_drivers(self) -> List[Driver]:
        return self.db.query(Driver).order_by(Driver.full_name).all()
    
    def get_driver(self, driver_id: int) -> Driver:
        driver = self.db.query(Driver).filter(Driver.id == driver_id).first()
        if not driver:
            raise NotFound("Driver not found")
        return driver
    
    def get_drivers_by_status(self, status: DriverStatus) -> List[Driver]:
        return self.db.query(Driver).filter(
            Driver.availability_status == status.value
        ).order_by(Driver.full_name).all()
    
    def get_available_drivers(self) -> List[Driver]:
        """Available drivers that are not assigned to a bus"""
        return self.db.query(Driver).filter(
            Driver.availability_status == DriverStatus.AVAILABLE.value,
            (Driver.assigned_bus == "") | (Driver.assigned_bus.is_(None))
        ).order_by(Driver.full_name).all()
    
    def get_drivers_with_expiring_licenses(self, now: Optional[datetime] = None) -> List[Driver]:
        now = now or datetime.now()
        horizon = now + timedelta(days=settings.LICENSE_WARNING_DAYS)
        return self.db.query(Driver).filter(
            Driver.license_expiry > now,
            Driver.license_expiry <= horizon
        ).order_by(Driver.license_expiry).all()
    
    def get_expired_drivers(self, now: Optional[datetime] = None) -> List[Driver]:
        now = now or datetime.now()
        return self.db.query(Driver).filter(
            Driver.license_expiry <= now
        ).order_by(Driver.license_expiry).all()
    
    def get_existing_contact_numbers(self) -> List[str]:
        return [row[0] for row in self.db.query(Driver.contact_number).all()]
    
    def get_stats(self, now: Optional[datetime] = None) -> DriverStats:
        now = now or datetime.now()
        counts = dict(
            self.db.query(Driver.availability_status, func.count(Driver.id))
            .group_by(Driver.availability_status)
            .all()
        )
        return DriverStats(
            total_drivers=sum(counts.values()),
            available_drivers=counts.get(DriverStatus.AVAILABLE.value, 0),
            busy_drivers=counts.get(DriverStatus.BUSY.value, 0),
            on_leave_drivers=counts.get(DriverStatus.ON_LEAVE.value, 0),
            suspended_drivers=counts.get(DriverStatus.SUSPENDED.value, 0),
            inactive_drivers=counts.get(DriverStatus.INACTIVE.value, 0),
            expiring_licenses=len(self.get_drivers_with_expiring_licenses(now)),
            expired_licenses=len(self.get_expired_drivers(now))
        )
    
    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_driver(self, data: DriverCreate, now: Optional[datetime] = None) -> Driver:
        now = now or datetime.now()
        fields = data.dict(exclude={"emergency_contact"})
        fields["license_expiry"] = naive_local(fields["license_expiry"])
        fields["date_of_birth"] = naive_local(fields.get("date_of_birth"))
        fields["availability_status"] = data.availability_status.value
        if fields.get("join_date") is None:
            fields.pop("join_date", None)
        
        self._validate_license_number(fields["license_number"])
        self._validate_license_expiry(fields["license_expiry"], now)
        self._validate_status_choice(fields["availability_status"])
        self._ensure_unique(fields["license_number"], fields["contact_number"])
        
        driver = Driver(**fields)
        driver.previous_status = fields["availability_status"]
        driver.last_status_update = now
        self._set_emergency_contact(driver, data.emergency_contact)
        
        apply_license_rules(driver, now)
        self.db.add(driver)
        self._commit()
        self.db.refresh(driver)
        
        logger.info("Created driver %s (%s)", driver.id, driver.license_number)
        return driver
    
    def update_driver(
        self,
        driver_id: int,
        data: DriverUpdate,
        now: Optional[datetime] = None
    ) -> Driver:
        now = now or datetime.now()
        driver = self.get_driver(driver_id)
        
        update_data = data.dict(exclude_unset=True)
        replaces_contact = "emergency_contact" in update_data
        emergency_contact = update_data.pop("emergency_contact", None)
        
        for key in ("full_name", "license_number", "license_expiry", "contact_number", "address", "availability_status"):
            if key in update_data and update_data[key] is None:
                raise ValidationError(f"{key} cannot be empty")
        
        if "license_number" in update_data:
            self._validate_license_number(update_data["license_number"])
        if "license_expiry" in update_data:
            update_data["license_expiry"] = naive_local(update_data["license_expiry"])
            self._validate_license_expiry(update_data["license_expiry"], now)
        if "date_of_birth" in update_data:
            update_data["date_of_birth"] = naive_local(update_data["date_of_birth"])
        if update_data.get("availability_status") is not None:
            update_data["availability_status"] = DriverStatus(update_data["availability_status"]).value
            self._validate_status_choice(update_data["availability_status"])
            if update_data["availability_status"] != driver.availability_status:
                driver.last_status_update = now
        
        self._ensure_unique(
            update_data.get("license_number"),
            update_data.get("contact_number"),
            exclude_id=driver.id
        )
        
        for field, value in update_data.items():
            setattr(driver, field, value)
        if replaces_contact:
            self._set_emergency_contact(
                driver,
                EmergencyContact(**emergency_contact) if emergency_contact else None
            )
        
        transition = apply_license_rules(driver, now)
        self._commit()
        self.db.refresh(driver)
        
        if transition == LicenseTransition.RESTORED:
            logger.info("Driver %s restored to %s after license renewal", driver.id, driver.availability_status)
        elif transition == LicenseTransition.DEACTIVATED:
            logger.info("Driver %s marked Inactive: license expired", driver.id)
        return driver
    
    def delete_driver(self, driver_id: int):
        driver = self.get_driver(driver_id)
        photo = driver.profile_photo
        
        self.db.delete(driver)
        self.db.commit()
        self.storage.delete(photo)
        
        logger.info("Deleted driver %s", driver_id)
    
    def assign_to_bus(self, driver_id: int, bus_number: str, now: Optional[datetime] = None) -> Driver:
        """Put an Available driver on a bus"""
        now = now or datetime.now()
        driver = self.get_driver(driver_id)
        
        bus = self.db.query(Bus).filter(Bus.bus_number == bus_number).first()
        if not bus:
            raise NotFound("Bus not found")
        
        # An unswept expired license must not slip through as Available
        if apply_license_rules(driver, now) is not None:
            self.db.commit()
        
        if driver.availability_status != DriverStatus.AVAILABLE.value:
            raise Conflict("Driver is not available for assignment")
        
        driver.assigned_bus = bus_number
        driver.availability_status = DriverStatus.BUSY.value
        driver.last_status_update = now
        self.db.commit()
        self.db.refresh(driver)
        
        logger.info("Assigned driver %s to bus %s", driver.id, bus_number)
        return driver
    
    def unassign(self, driver_id: int, now: Optional[datetime] = None) -> Driver:
        """Release a driver from their bus.

        The status is forced to Available without consulting the license, so a
        driver with an expired license comes back Available until the next
        write or sweep marks them Inactive again.
        """
        now = now or datetime.now()
        driver = self.get_driver(driver_id)
        
        driver.assigned_bus = ""
        driver.availability_status = DriverStatus.AVAILABLE.value
        driver.last_status_update = now
        self.db.commit()
        self.db.refresh(driver)
        
        logger.info("Unassigned driver %s", driver.id)
        return driver
    
    def reactivate(self, driver_id: int, license_expiry: datetime, now: Optional[datetime] = None) -> Driver:
        """Renew a license and put the driver back to Available"""
        now = now or datetime.now()
        license_expiry = naive_local(license_expiry)
        if license_expiry <= now:
            raise ValidationError("New license expiry date must be in the future")
        
        driver = self.get_driver(driver_id)
        driver.license_expiry = license_expiry
        driver.availability_status = DriverStatus.AVAILABLE.value
        driver.is_active = True
        driver.license_expiry_warning = False
        driver.last_status_update = now
        
        apply_license_rules(driver, now)
        self.db.commit()
        self.db.refresh(driver)
        
        logger.info("Reactivated driver %s, license valid until %s", driver.id, license_expiry)
        return driver
    
    def reconcile_license_statuses(self, now: Optional[datetime] = None) -> LicenseReconciliationResult:
        """Sweep every driver through the license rules"""
        now = now or datetime.now()
        deactivated = 0
        restored = 0
        expiring = 0
        expired = 0
        
        for driver in self.db.query(Driver).all():
            transition = apply_license_rules(driver, now)
            if transition == LicenseTransition.DEACTIVATED:
                deactivated += 1
            elif transition == LicenseTransition.RESTORED:
                restored += 1
            
            if driver.license_expiry <= now:
                expired += 1
            elif driver.license_expiry_warning:
                expiring += 1
        
        self.db.commit()
        
        logger.info(
            "License sweep: %d deactivated, %d restored, %d expiring, %d expired",
            deactivated, restored, expiring, expired
        )
        return LicenseReconciliationResult(
            deactivated=deactivated,
            restored=restored,
            expiring=expiring,
            expired=expired,
            checked_at=now
        )
    
    def update_photo(self, driver_id: int, photo: UploadFile) -> Driver:
        """Store a new profile photo and drop the previous uploaded one"""
        driver = self.get_driver(driver_id)
        previous = driver.profile_photo
        
        stored = self.storage.save_driver_photo(driver.id, photo)
        driver.profile_photo = stored
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.storage.delete(stored)
            raise
        self.db.refresh(driver)
        
        if previous != driver.profile_photo:
            self.storage.delete(previous)
        return driver
    
    def delete_photo(self, driver_id: int) -> Driver:
        """Reset the profile photo to the default avatar"""
        driver = self.get_driver(driver_id)
        previous = driver.profile_photo
        
        driver.profile_photo = settings.DEFAULT_PROFILE_PHOTO
        self.db.commit()
        self.db.refresh(driver)
        
        self.storage.delete(previous)
        return driver
    
    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _validate_license_number(self, license_number: str):
        if not license_number or not LICENSE_NUMBER_PATTERN.match(license_number):
            raise ValidationError(LICENSE_NUMBER_MESSAGE)
    
    def _validate_license_expiry(self, license_expiry: datetime, now: datetime):
        if license_expiry.date() < now.date():
            raise ValidationError("License Expiry Date must be today or a future date")
    
    def _validate_status_choice(self, status: str):
        if status == DriverStatus.INACTIVE.value:
            raise ValidationError("Inactive status is set automatically when a license expires")
    
    def _ensure_unique(
        self,
        license_number: Optional[str],
        contact_number: Optional[str],
        exclude_id: Optional[int] = None
    ):
        checks = (
            ("license_number", Driver.license_number, license_number),
            ("contact_number", Driver.contact_number, contact_number),
        )
        for field, column, value in checks:
            if value is None:
                continue
            query = self.db.query(Driver.id).filter(column == value)
            if exclude_id is not None:
                query = query.filter(Driver.id != exclude_id)
            if query.first():
                raise ValidationError(UNIQUE_FIELD_MESSAGES[field])
    
    def _set_emergency_contact(self, driver: Driver, contact: Optional[EmergencyContact]):
        driver.emergency_contact_name = contact.name if contact else None
        driver.emergency_contact_phone = contact.phone if contact else None
        driver.emergency_contact_relationship = contact.relationship if contact else None
    
    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig)
            for field, detail in UNIQUE_FIELD_MESSAGES.items():
                if field in message:
                    raise ValidationError(detail)
            raise ValidationError("Driver violates a uniqueness constraint")
