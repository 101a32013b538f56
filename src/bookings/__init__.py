"""
Booking Module

Passenger bookings against bus schedules:

- booking_service.py: seat reservation, cancellation with seat release,
  payment status updates, booking references and popular-route ranking
- router.py: FastAPI endpoints for the booking owner
- schemas.py: Pydantic models for booking data and status enumerations
"""

from .router import router
from .booking_service import BookingService, split_route, generate_booking_reference
from .schemas import (
    BookingCreateRequest, BookingCancellationRequest, Booking, BookingStatus,
    PaymentStatus, PaymentMethod, PassengerInfo, PopularRoute
)

__all__ = [
    "router",
    "BookingService",
    "split_route",
    "generate_booking_reference",
    "BookingCreateRequest",
    "BookingCancellationRequest",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "PaymentMethod",
    "PassengerInfo",
    "PopularRoute"
]
