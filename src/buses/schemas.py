from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
from enum import Enum

class BusType(str, Enum):
    AC = "AC"
    NON_AC = "Non-AC"
    SLEEPER = "Sleeper"
    SEATER = "Seater"

class BusStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    MAINTENANCE = "Maintenance"

class BusBase(BaseModel):
    bus_number: str = Field(..., min_length=1, max_length=50)
    registration_number: str = Field(..., min_length=1, max_length=50)
    capacity: int = Field(..., ge=1)
    bus_type: BusType
    driver: str = ""
    status: BusStatus = BusStatus.ACTIVE
    
    @validator("bus_number", "registration_number", "driver")
    def strip_text(cls, v):
        return v.strip()

class BusCreate(BusBase):
    pass

class BusUpdate(BaseModel):
    bus_number: Optional[str] = Field(None, min_length=1, max_length=50)
    registration_number: Optional[str] = Field(None, min_length=1, max_length=50)
    capacity: Optional[int] = Field(None, ge=1)
    bus_type: Optional[BusType] = None
    driver: Optional[str] = None
    status: Optional[BusStatus] = None

class Bus(BusBase):
    id: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
