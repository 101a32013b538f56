from pydantic import BaseModel, EmailStr, Field, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"

class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    ONLINE = "Online"
    WALLET = "Wallet"

class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"

DEFAULT_CANCELLATION_REASON = "Cancelled by user"

# Passenger Information
class PassengerInfo(BaseModel):
    """Individual passenger on a booking"""
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=1)
    gender: Gender
    seat_number: str = Field(..., min_length=1)
    
    @validator("name", "seat_number")
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v
    
    class Config:
        from_attributes = True

# Booking Request Models
class BookingCreateRequest(BaseModel):
    """Request to book seats on a schedule"""
    schedule_id: int
    passengers: List[PassengerInfo]
    contact_email: EmailStr
    contact_phone: str = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    
    @validator("passengers")
    def validate_passengers(cls, v):
        if not v:
            raise ValueError("At least one passenger is required")
        seats = [p.seat_number for p in v]
        if len(seats) != len(set(seats)):
            raise ValueError("Each passenger needs a different seat number")
        return v

class BookingCancellationRequest(BaseModel):
    """Request to cancel a booking"""
    reason: Optional[str] = None

class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus

# Booking Response Models
class Booking(BaseModel):
    """Booking details"""
    id: int
    booking_reference: str  # Human-readable reference
    user_id: int
    schedule_id: int
    bus_id: int
    from_location: str
    to_location: str
    travel_date: datetime
    departure_time: str
    arrival_time: str
    passengers: List[PassengerInfo]
    total_amount: Decimal
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    booking_status: BookingStatus
    contact_email: str
    contact_phone: str
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True

class BookingResponse(BaseModel):
    message: str
    booking: Booking

class BookingDetail(BaseModel):
    booking: Booking

class BookingList(BaseModel):
    bookings: List[Booking]

class PopularRoute(BaseModel):
    """Route ranking entry built from recent bookings"""
    from_location: str
    to_location: str
    count: int
    min_price: Decimal
