from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from src.models import Bus, Booking
from src.buses.schemas import BusCreate, BusUpdate
from src.exceptions import NotFound, ValidationError, Conflict

class BusService:
    @staticmethod
    def get_buses(db: Session) -> List[Bus]:
        """Get all buses"""
        return db.query(Bus).order_by(Bus.bus_number).all()
    
    @staticmethod
    def get_bus(db: Session, bus_id: int) -> Bus:
        """Get bus by ID"""
        bus = db.query(Bus).filter(Bus.id == bus_id).first()
        if not bus:
            raise NotFound("Bus not found")
        return bus
    
    @staticmethod
    def get_bus_by_number(db: Session, bus_number: str) -> Optional[Bus]:
        """Get bus by its fleet number"""
        return db.query(Bus).filter(Bus.bus_number == bus_number).first()
    
    @staticmethod
    def create_bus(db: Session, bus: BusCreate) -> Bus:
        """Create a new bus"""
        BusService._ensure_unique(db, bus.bus_number, bus.registration_number)
        db_bus = Bus(
            bus_number=bus.bus_number,
            registration_number=bus.registration_number,
            capacity=bus.capacity,
            bus_type=bus.bus_type.value,
            driver=bus.driver,
            status=bus.status.value
        )
        db.add(db_bus)
        BusService._commit(db)
        db.refresh(db_bus)
        return db_bus
    
    @staticmethod
    def update_bus(db: Session, bus_id: int, bus_update: BusUpdate) -> Bus:
        """Update bus information"""
        db_bus = BusService.get_bus(db, bus_id)
        update_data = bus_update.dict(exclude_unset=True)
        
        for key in ("bus_number", "registration_number", "capacity", "bus_type", "status"):
            if key in update_data and update_data[key] is None:
                raise ValidationError(f"{key} cannot be empty")
        
        BusService._ensure_unique(
            db,
            update_data.get("bus_number"),
            update_data.get("registration_number"),
            exclude_id=bus_id
        )
        
        for field, value in update_data.items():
            setattr(db_bus, field, getattr(value, "value", value))
        
        BusService._commit(db)
        db.refresh(db_bus)
        return db_bus
    
    @staticmethod
    def delete_bus(db: Session, bus_id: int):
        """Delete a bus that no booking refers to"""
        db_bus = BusService.get_bus(db, bus_id)
        if db.query(Booking.id).filter(Booking.bus_id == bus_id).first():
            raise Conflict("Bus has bookings and cannot be deleted")
        db.delete(db_bus)
        db.commit()
    
    @staticmethod
    def _ensure_unique(
        db: Session,
        bus_number: Optional[str],
        registration_number: Optional[str],
        exclude_id: Optional[int] = None
    ):
        checks = (
            (Bus.bus_number, bus_number, "Bus with this bus number already exists"),
            (Bus.registration_number, registration_number, "Bus with this registration number already exists"),
        )
        for column, value, message in checks:
            if value is None:
                continue
            query = db.query(Bus.id).filter(column == value)
            if exclude_id is not None:
                query = query.filter(Bus.id != exclude_id)
            if query.first():
                raise ValidationError(message)
    
    @staticmethod
    def _commit(db: Session):
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError("Bus number and registration number must be unique")
