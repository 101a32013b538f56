from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum
import re

LICENSE_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{10,16}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")

LICENSE_NUMBER_MESSAGE = (
    "License Number must be 10-16 characters, only uppercase letters and digits (e.g., GJ07DL8932)"
)

class DriverStatus(str, Enum):
    """Driver availability status"""
    AVAILABLE = "Available"
    BUSY = "Busy"
    ON_LEAVE = "On Leave"
    SUSPENDED = "Suspended"
    INACTIVE = "Inactive"

def _check_phone(value: Optional[str], label: str) -> Optional[str]:
    if value is None or value == "":
        return value
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError(f"{label} must be exactly 10 digits")
    return value

def _check_adult(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    age_years = (datetime.now() - value.replace(tzinfo=None)).days / 365.25
    if age_years < 18:
        raise ValueError("Driver must be at least 18 years old")
    return value

class EmergencyContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None
    
    @validator("phone")
    def validate_phone(cls, v):
        return _check_phone(v, "Emergency contact phone")

class DriverBase(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    license_number: str
    license_expiry: datetime
    contact_number: str
    address: str = Field(..., min_length=10)
    assigned_bus: str = ""
    availability_status: DriverStatus = DriverStatus.AVAILABLE
    date_of_birth: Optional[datetime] = None
    emergency_contact: Optional[EmergencyContact] = None
    experience: int = Field(0, ge=0)
    salary: Optional[Decimal] = Field(None, ge=0)
    join_date: Optional[datetime] = None
    
    @validator("full_name", "address")
    def strip_text(cls, v):
        return v.strip()
    
    @validator("license_number")
    def normalize_license_number(cls, v):
        return v.strip().upper()
    
    @validator("contact_number")
    def validate_contact_number(cls, v):
        return _check_phone(v, "Contact Number")
    
    @validator("date_of_birth")
    def validate_date_of_birth(cls, v):
        return _check_adult(v)

class DriverCreate(DriverBase):
    pass

class DriverUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    license_number: Optional[str] = None
    license_expiry: Optional[datetime] = None
    contact_number: Optional[str] = None
    address: Optional[str] = Field(None, min_length=10)
    assigned_bus: Optional[str] = None
    availability_status: Optional[DriverStatus] = None
    date_of_birth: Optional[datetime] = None
    emergency_contact: Optional[EmergencyContact] = None
    experience: Optional[int] = Field(None, ge=0)
    salary: Optional[Decimal] = Field(None, ge=0)
    join_date: Optional[datetime] = None
    
    @validator("license_number")
    def normalize_license_number(cls, v):
        return v.strip().upper() if v is not None else v
    
    @validator("contact_number")
    def validate_contact_number(cls, v):
        return _check_phone(v, "Contact Number")
    
    @validator("date_of_birth")
    def validate_date_of_birth(cls, v):
        return _check_adult(v)

class Driver(BaseModel):
    id: int
    full_name: str
    license_number: str
    license_expiry: datetime
    contact_number: str
    address: str
    assigned_bus: Optional[str] = ""
    availability_status: DriverStatus
    previous_status: Optional[DriverStatus] = None
    profile_photo: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    emergency_contact: Optional[EmergencyContact] = None
    experience: Optional[int] = 0
    salary: Optional[Decimal] = None
    join_date: Optional[datetime] = None
    is_active: bool
    license_expiry_warning: bool
    is_license_expired: bool
    is_license_expiring_soon: bool
    last_status_update: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True

class DriverAssignment(BaseModel):
    driver_id: int
    bus_number: str = Field(..., min_length=1)

class DriverReactivation(BaseModel):
    license_expiry: datetime

class LicenseReconciliationResult(BaseModel):
    """Outcome of one license-expiry sweep"""
    deactivated: int
    restored: int
    expiring: int
    expired: int
    checked_at: datetime

class DriverStats(BaseModel):
    total_drivers: int
    available_drivers: int
    busy_drivers: int
    on_leave_drivers: int
    suspended_drivers: int
    inactive_drivers: int
    expiring_licenses: int
    expired_licenses: int

class PhotoUploadResponse(BaseModel):
    message: str
    profile_photo: str
    driver: Driver
