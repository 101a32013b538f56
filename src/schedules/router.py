from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from src.database import get_db
from src.auth.dependencies import get_current_admin_user
from src.schedules.schemas import Schedule, ScheduleCreate, ScheduleUpdate
from src.schedules.service import ScheduleService

router = APIRouter(dependencies=[Depends(get_current_admin_user)])

@router.get("/", response_model=List[Schedule])
def get_schedules(db: Session = Depends(get_db)):
    """Get all schedules"""
    return ScheduleService.get_schedules(db)

@router.post("/", response_model=Schedule, status_code=status.HTTP_201_CREATED)
def create_schedule(schedule: ScheduleCreate, db: Session = Depends(get_db)):
    """Create a bus schedule"""
    return ScheduleService.create_schedule(db, schedule)

@router.get("/bus/{bus_number}", response_model=List[Schedule])
def get_schedules_by_bus(bus_number: str, db: Session = Depends(get_db)):
    """Get schedules for one bus"""
    return ScheduleService.get_schedules_by_bus(db, bus_number)

@router.get("/route/{route}", response_model=List[Schedule])
def get_schedules_by_route(route: str, db: Session = Depends(get_db)):
    """Get schedules for an exact route string"""
    return ScheduleService.get_schedules_by_route(db, route)

@router.get("/{schedule_id}", response_model=Schedule)
def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    """Get schedule by ID"""
    return ScheduleService.get_schedule(db, schedule_id)

@router.put("/{schedule_id}", response_model=Schedule)
def update_schedule(schedule_id: int, schedule_update: ScheduleUpdate, db: Session = Depends(get_db)):
    """Update a schedule"""
    return ScheduleService.update_schedule(db, schedule_id, schedule_update)

@router.delete("/{schedule_id}")
def delete_schedule(schedule_id: int, db: Session = Depends(get_db)):
    """Delete a schedule"""
    ScheduleService.delete_schedule(db, schedule_id)
    return {"message": "Schedule deleted successfully"}
