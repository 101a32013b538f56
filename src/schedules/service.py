from typing import List, Optional
from datetime import datetime, date
from sqlalchemy import or_
from sqlalchemy.orm import Session
from src.models import BusSchedule, Bus, Booking
from src.schedules.schemas import ScheduleCreate, ScheduleUpdate, ScheduleStatus
from src.exceptions import NotFound, ValidationError, Conflict
from src.utils import naive_local, day_bounds

def _like_fragment(text: str) -> str:
    """Escape LIKE wildcards so user input only matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

class ScheduleService:
    @staticmethod
    def get_schedules(db: Session) -> List[BusSchedule]:
        """Get all schedules ordered by date and departure"""
        return db.query(BusSchedule).order_by(BusSchedule.date, BusSchedule.departure).all()
    
    @staticmethod
    def get_schedule(db: Session, schedule_id: int) -> BusSchedule:
        """Get schedule by ID"""
        schedule = db.query(BusSchedule).filter(BusSchedule.id == schedule_id).first()
        if not schedule:
            raise NotFound("Schedule not found")
        return schedule
    
    @staticmethod
    def get_schedules_by_bus(db: Session, bus_number: str) -> List[BusSchedule]:
        return db.query(BusSchedule).filter(
            BusSchedule.bus_number == bus_number
        ).order_by(BusSchedule.date, BusSchedule.departure).all()
    
    @staticmethod
    def get_schedules_by_route(db: Session, route: str) -> List[BusSchedule]:
        return db.query(BusSchedule).filter(
            BusSchedule.route == route
        ).order_by(BusSchedule.date, BusSchedule.departure).all()
    
    @staticmethod
    def create_schedule(db: Session, schedule: ScheduleCreate) -> BusSchedule:
        """Create a schedule; seat counts default from the bus capacity"""
        total_seats = schedule.total_seats
        if total_seats is None:
            bus = db.query(Bus).filter(Bus.bus_number == schedule.bus_number).first()
            total_seats = bus.capacity if bus else 0
        available_seats = total_seats if schedule.available_seats is None else schedule.available_seats
        ScheduleService._validate_seats(available_seats, total_seats)
        
        db_schedule = BusSchedule(
            bus_number=schedule.bus_number,
            route=schedule.route,
            date=naive_local(schedule.date),
            departure=schedule.departure,
            arrival=schedule.arrival,
            driver=schedule.driver,
            fare=schedule.fare,
            status=schedule.status.value,
            total_seats=total_seats,
            available_seats=available_seats
        )
        db.add(db_schedule)
        db.commit()
        db.refresh(db_schedule)
        return db_schedule
    
    @staticmethod
    def update_schedule(db: Session, schedule_id: int, schedule_update: ScheduleUpdate) -> BusSchedule:
        """Update a schedule, keeping 0 <= available_seats <= total_seats"""
        db_schedule = ScheduleService.get_schedule(db, schedule_id)
        update_data = schedule_update.dict(exclude_unset=True)
        
        for key, value in update_data.items():
            if value is None:
                raise ValidationError(f"{key} cannot be empty")
        
        ScheduleService._validate_seats(
            update_data.get("available_seats", db_schedule.available_seats),
            update_data.get("total_seats", db_schedule.total_seats)
        )
        if "date" in update_data:
            update_data["date"] = naive_local(update_data["date"])
        
        for field, value in update_data.items():
            setattr(db_schedule, field, getattr(value, "value", value))
        
        db.commit()
        db.refresh(db_schedule)
        return db_schedule
    
    @staticmethod
    def delete_schedule(db: Session, schedule_id: int):
        """Delete a schedule that no booking refers to"""
        db_schedule = ScheduleService.get_schedule(db, schedule_id)
        if db.query(Booking.id).filter(Booking.schedule_id == schedule_id).first():
            raise Conflict("Schedule has bookings and cannot be deleted")
        db.delete(db_schedule)
        db.commit()
    
    @staticmethod
    def search_schedules(db: Session, from_location: str, to_location: str, travel_date: date) -> List[BusSchedule]:
        """Bookable schedules on a day whose route mentions both places, in either order"""
        origin = _like_fragment(from_location.strip())
        destination = _like_fragment(to_location.strip())
        day_start, day_end = day_bounds(travel_date)
        
        return db.query(BusSchedule).filter(
            or_(
                BusSchedule.route.ilike(f"%{origin}%{destination}%", escape="\\"),
                BusSchedule.route.ilike(f"%{destination}%{origin}%", escape="\\")
            ),
            BusSchedule.date >= day_start,
            BusSchedule.date <= day_end,
            BusSchedule.status != ScheduleStatus.CANCELLED.value,
            BusSchedule.available_seats > 0
        ).order_by(BusSchedule.departure).all()
    
    @staticmethod
    def get_available_schedules(db: Session, now: Optional[datetime] = None) -> List[BusSchedule]:
        """Upcoming scheduled trips that still have seats"""
        now = now or datetime.now()
        today_start, _ = day_bounds(now.date())
        return db.query(BusSchedule).filter(
            BusSchedule.status == ScheduleStatus.SCHEDULED.value,
            BusSchedule.date >= today_start,
            BusSchedule.available_seats > 0
        ).order_by(BusSchedule.date, BusSchedule.departure).all()
    
    @staticmethod
    def _validate_seats(available_seats: int, total_seats: int):
        if available_seats < 0 or total_seats < 0:
            raise ValidationError("Seat counts cannot be negative")
        if available_seats > total_seats:
            raise ValidationError("Available seats cannot exceed total seats")
