from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from src.database import get_db
from src.auth.dependencies import get_current_customer
from src.bookings.schemas import (
    BookingCreateRequest, BookingCancellationRequest, PaymentStatusUpdate,
    BookingResponse, BookingDetail, BookingList, BookingStatus
)
from src.bookings.booking_service import BookingService

router = APIRouter()

@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Book seats on a schedule"""
    booking = BookingService(db).create_booking(current_user.id, request)
    return BookingResponse(message="Booking created successfully", booking=booking)

@router.get("/my-bookings", response_model=BookingList)
def get_user_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Get all bookings of the authenticated user"""
    bookings = BookingService(db).get_user_bookings(current_user.id, booking_status)
    return BookingList(bookings=bookings)

@router.get("/reference/{booking_reference}", response_model=BookingDetail)
def get_booking_by_reference(
    booking_reference: str,
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Get booking by reference number"""
    booking = BookingService(db).get_booking_by_reference(booking_reference, current_user.id)
    return BookingDetail(booking=booking)

@router.get("/{booking_id}", response_model=BookingDetail)
def get_booking(
    booking_id: int,
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Get booking details by ID"""
    booking = BookingService(db).get_booking(booking_id, current_user.id)
    return BookingDetail(booking=booking)

@router.put("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    cancellation: Optional[BookingCancellationRequest] = None,
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Cancel a booking and release its seats"""
    reason = cancellation.reason if cancellation else None
    booking = BookingService(db).cancel_booking(booking_id, current_user.id, reason)
    return BookingResponse(message="Booking cancelled successfully", booking=booking)

@router.put("/{booking_id}/payment", response_model=BookingResponse)
def update_payment_status(
    booking_id: int,
    payment: PaymentStatusUpdate,
    current_user = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    """Update the payment status of a booking"""
    booking = BookingService(db).update_payment_status(booking_id, current_user.id, payment.payment_status)
    return BookingResponse(message="Payment status updated successfully", booking=booking)
