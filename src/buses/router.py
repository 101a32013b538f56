from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from src.database import get_db
from src.auth.dependencies import get_current_admin_user
from src.buses.schemas import Bus, BusCreate, BusUpdate
from src.buses.service import BusService

router = APIRouter(dependencies=[Depends(get_current_admin_user)])

@router.get("/", response_model=List[Bus])
def get_buses(db: Session = Depends(get_db)):
    """Get all buses"""
    return BusService.get_buses(db)

@router.post("/", response_model=Bus, status_code=status.HTTP_201_CREATED)
def create_bus(bus: BusCreate, db: Session = Depends(get_db)):
    """Add a bus to the fleet"""
    return BusService.create_bus(db, bus)

@router.get("/{bus_id}", response_model=Bus)
def get_bus(bus_id: int, db: Session = Depends(get_db)):
    """Get bus by ID"""
    return BusService.get_bus(db, bus_id)

@router.put("/{bus_id}", response_model=Bus)
def update_bus(bus_id: int, bus_update: BusUpdate, db: Session = Depends(get_db)):
    """Update a bus"""
    return BusService.update_bus(db, bus_id, bus_update)

@router.delete("/{bus_id}")
def delete_bus(bus_id: int, db: Session = Depends(get_db)):
    """Remove a bus from the fleet"""
    BusService.delete_bus(db, bus_id)
    return {"message": "Bus deleted successfully"}
