import logging
import random
import time
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import case, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.bookings.schemas import (
    BookingCreateRequest, BookingStatus, PaymentStatus, PopularRoute,
    DEFAULT_CANCELLATION_REASON
)
from src.exceptions import Forbidden, InsufficientCapacity, InvalidState, NotFound
from src.models import Booking, Bus, BusSchedule, Passenger

logger = logging.getLogger(__name__)

ROUTE_DELIMITER = " - "
REFERENCE_ATTEMPTS = 5

def split_route(route: str) -> Tuple[str, str]:
    """Split a "From - To" route; without the delimiter both ends are the whole route"""
    parts = route.split(ROUTE_DELIMITER)
    origin = parts[0] or route
    destination = parts[1] if len(parts) > 1 and parts[1] else route
    return origin, destination

def generate_booking_reference() -> str:
    """BK + epoch milliseconds + a random 0-999 suffix"""
    return f"BK{int(time.time() * 1000)}{random.randint(0, 999)}"

class BookingService:
    """Seat reservation, cancellation and payment state for bookings"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def create_booking(self, user_id: int, request: BookingCreateRequest) -> Booking:
        """Book seats on a schedule, reserving them atomically"""
        schedule = self.db.query(BusSchedule).filter(BusSchedule.id == request.schedule_id).first()
        if not schedule:
            raise NotFound("Schedule not found")
        
        bus = self.db.query(Bus).filter(Bus.bus_number == schedule.bus_number).first()
        if not bus:
            raise NotFound("Bus not found")
        
        seat_count = len(request.passengers)
        if schedule.available_seats < seat_count:
            raise InsufficientCapacity(schedule.available_seats)
        
        from_location, to_location = split_route(schedule.route)
        total_amount = schedule.fare * seat_count
        
        for attempt in range(REFERENCE_ATTEMPTS):
            booking = Booking(
                user_id=user_id,
                schedule_id=schedule.id,
                bus_id=bus.id,
                from_location=from_location,
                to_location=to_location,
                travel_date=schedule.date,
                departure_time=schedule.departure,
                arrival_time=schedule.arrival,
                total_amount=total_amount,
                payment_status=PaymentStatus.PENDING.value,
                payment_method=request.payment_method.value,
                booking_status=BookingStatus.ACTIVE.value,
                booking_reference=self._unused_reference(),
                contact_email=request.contact_email,
                contact_phone=request.contact_phone,
                passengers=[
                    Passenger(
                        position=index,
                        name=passenger.name,
                        age=passenger.age,
                        gender=passenger.gender.value,
                        seat_number=passenger.seat_number
                    )
                    for index, passenger in enumerate(request.passengers)
                ]
            )
            
            self._reserve_seats(schedule.id, seat_count)
            self.db.add(booking)
            try:
                self.db.commit()
            except IntegrityError:
                # Reference collided with a concurrent booking; the seat
                # reservation was rolled back with it
                self.db.rollback()
                logger.warning("Booking reference collision, retrying (attempt %d)", attempt + 1)
                continue
            
            self.db.refresh(booking)
            logger.info(
                "Booking %s created for user %s: %d seats on schedule %s",
                booking.booking_reference, user_id, seat_count, schedule.id
            )
            return booking
        
        raise InvalidState("Could not allocate a booking reference, please retry")
    
    def cancel_booking(
        self,
        booking_id: int,
        requester_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Booking:
        """Cancel an active booking and give its seats back exactly once"""
        now = now or datetime.now()
        booking = self._get_owned_booking(booking_id, requester_id)
        
        if booking.booking_status == BookingStatus.CANCELLED.value:
            raise InvalidState("Booking already cancelled")
        if booking.booking_status == BookingStatus.COMPLETED.value:
            raise InvalidState("Cannot cancel completed booking")
        
        seat_count = len(booking.passengers)
        schedule_id = booking.schedule_id
        
        # Only the request that flips the row from Active restores seats
        cancelled = self.db.query(Booking).filter(
            Booking.id == booking.id,
            Booking.booking_status == BookingStatus.ACTIVE.value
        ).update(
            {
                Booking.booking_status: BookingStatus.CANCELLED.value,
                Booking.cancelled_at: now,
                Booking.cancellation_reason: reason or DEFAULT_CANCELLATION_REASON,
                Booking.payment_status: case(
                    (Booking.payment_status == PaymentStatus.COMPLETED.value, PaymentStatus.REFUNDED.value),
                    else_=Booking.payment_status
                ),
            },
            synchronize_session=False
        )
        if not cancelled:
            self.db.rollback()
            raise InvalidState("Booking is no longer active")
        
        restored_seats = BusSchedule.available_seats + seat_count
        self.db.query(BusSchedule).filter(BusSchedule.id == schedule_id).update(
            {
                BusSchedule.available_seats: case(
                    (restored_seats > BusSchedule.total_seats, BusSchedule.total_seats),
                    else_=restored_seats
                )
            },
            synchronize_session=False
        )
        self.db.commit()
        self.db.refresh(booking)
        
        logger.info("Booking %s cancelled, %d seats released", booking.booking_reference, seat_count)
        return booking
    
    def update_payment_status(self, booking_id: int, requester_id: int, payment_status: PaymentStatus) -> Booking:
        """Set the payment status; any transition is accepted"""
        booking = self._get_owned_booking(booking_id, requester_id)
        booking.payment_status = payment_status.value
        self.db.commit()
        self.db.refresh(booking)
        return booking
    
    def get_booking(self, booking_id: int, requester_id: int) -> Booking:
        """Get one of the requester's bookings by ID"""
        return self._get_owned_booking(booking_id, requester_id)
    
    def get_booking_by_reference(self, booking_reference: str, requester_id: int) -> Booking:
        """Get one of the requester's bookings by reference number"""
        booking = self.db.query(Booking).filter(Booking.booking_reference == booking_reference).first()
        if not booking:
            raise NotFound("Booking not found")
        if booking.user_id != requester_id:
            raise Forbidden("Access denied")
        return booking
    
    def get_user_bookings(self, user_id: int, booking_status: Optional[BookingStatus] = None) -> List[Booking]:
        """All bookings of a user, newest first"""
        query = self.db.query(Booking).filter(Booking.user_id == user_id)
        if booking_status:
            query = query.filter(Booking.booking_status == booking_status.value)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
    
    def get_popular_routes(
        self,
        limit: int = 10,
        window_days: int = 30,
        now: Optional[datetime] = None
    ) -> List[PopularRoute]:
        """Most booked routes over the trailing window"""
        now = now or datetime.now()
        since = now - timedelta(days=window_days)
        booking_count = func.count(Booking.id).label("count")
        
        rows = self.db.query(
            Booking.from_location,
            Booking.to_location,
            booking_count,
            func.min(Booking.total_amount).label("min_price")
        ).filter(
            Booking.booking_status != BookingStatus.CANCELLED.value,
            Booking.created_at >= since
        ).group_by(
            Booking.from_location, Booking.to_location
        ).order_by(
            desc(booking_count), Booking.from_location, Booking.to_location
        ).limit(limit).all()
        
        return [
            PopularRoute(
                from_location=row.from_location,
                to_location=row.to_location,
                count=row.count,
                min_price=row.min_price
            )
            for row in rows
        ]
    
    def _reserve_seats(self, schedule_id: int, seat_count: int):
        """Conditional decrement; fails instead of overselling under concurrency"""
        reserved = self.db.query(BusSchedule).filter(
            BusSchedule.id == schedule_id,
            BusSchedule.available_seats >= seat_count
        ).update(
            {BusSchedule.available_seats: BusSchedule.available_seats - seat_count},
            synchronize_session=False
        )
        if not reserved:
            self.db.rollback()
            remaining = self.db.query(BusSchedule.available_seats).filter(
                BusSchedule.id == schedule_id
            ).scalar()
            raise InsufficientCapacity(remaining or 0)
    
    def _unused_reference(self) -> str:
        reference = generate_booking_reference()
        while self.db.query(Booking.id).filter(Booking.booking_reference == reference).first():
            reference = generate_booking_reference()
        return reference
    
    def _get_owned_booking(self, booking_id: int, requester_id: int) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFound("Booking not found")
        if booking.user_id != requester_id:
            raise Forbidden("Access denied")
        return booking
