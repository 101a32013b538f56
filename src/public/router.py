from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from src.database import get_db
from src.bookings.booking_service import BookingService
from src.bookings.schemas import PopularRoute
from src.buses.service import BusService
from src.schedules.schemas import Schedule, ScheduleDetail, ScheduleSearchResponse
from src.schedules.service import ScheduleService
from src.exceptions import ValidationError

router = APIRouter()

@router.get("/search", response_model=ScheduleSearchResponse)
def search_buses(
    from_location: Optional[str] = Query(None, alias="from", description="Origin"),
    to_location: Optional[str] = Query(None, alias="to", description="Destination"),
    travel_date: Optional[date] = Query(None, alias="date", description="Travel date (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
):
    """Search bookable schedules between two places on a day"""
    from_location = from_location.strip() if from_location else from_location
    to_location = to_location.strip() if to_location else to_location
    if not from_location or not to_location or not travel_date:
        raise ValidationError("from, to and date are required")
    
    schedules = ScheduleService.search_schedules(db, from_location, to_location, travel_date)
    return ScheduleSearchResponse(count=len(schedules), schedules=schedules)

@router.get("/available", response_model=List[Schedule])
def get_available_schedules(db: Session = Depends(get_db)):
    """Upcoming schedules that still have seats"""
    return ScheduleService.get_available_schedules(db)

@router.get("/popular-routes", response_model=List[PopularRoute])
def get_popular_routes(
    limit: int = Query(10, ge=1, le=50, description="Maximum routes to return"),
    days: int = Query(30, ge=1, le=365, description="Trailing window in days"),
    db: Session = Depends(get_db)
):
    """Most booked routes in the trailing window"""
    return BookingService(db).get_popular_routes(limit=limit, window_days=days)

@router.get("/schedule/{schedule_id}", response_model=ScheduleDetail)
def get_schedule_details(schedule_id: int, db: Session = Depends(get_db)):
    """Schedule details with its bus"""
    schedule = ScheduleService.get_schedule(db, schedule_id)
    bus = BusService.get_bus_by_number(db, schedule.bus_number)
    return ScheduleDetail(schedule=schedule, bus=bus)
