from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from src.buses.schemas import Bus

class ScheduleStatus(str, Enum):
    """Bus schedule status"""
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

class ScheduleBase(BaseModel):
    bus_number: str = Field(..., min_length=1)
    route: str = Field(..., min_length=1, description='Route encoded as "From - To"')
    date: datetime
    departure: str = Field(..., min_length=1)
    arrival: str = Field(..., min_length=1)
    driver: str = Field(..., min_length=1)
    fare: Decimal = Field(..., ge=0)
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    
    @validator("bus_number", "route", "departure", "arrival", "driver")
    def strip_text(cls, v):
        return v.strip()

class ScheduleCreate(ScheduleBase):
    total_seats: Optional[int] = Field(None, ge=0, description="Defaults to the bus capacity")
    available_seats: Optional[int] = Field(None, ge=0, description="Defaults to total_seats")

class ScheduleUpdate(BaseModel):
    bus_number: Optional[str] = None
    route: Optional[str] = None
    date: Optional[datetime] = None
    departure: Optional[str] = None
    arrival: Optional[str] = None
    driver: Optional[str] = None
    fare: Optional[Decimal] = Field(None, ge=0)
    status: Optional[ScheduleStatus] = None
    total_seats: Optional[int] = Field(None, ge=0)
    available_seats: Optional[int] = Field(None, ge=0)

class Schedule(ScheduleBase):
    id: int
    total_seats: int
    available_seats: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True

class ScheduleSearchResponse(BaseModel):
    count: int
    schedules: List[Schedule]

class ScheduleDetail(BaseModel):
    """Public schedule view with its bus, if the bus still exists"""
    schedule: Schedule
    bus: Optional[Bus] = None
