from datetime import datetime, timedelta
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from src.database import Base
from src.config import settings

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20))
    role = Column(String(20), nullable=False, default="user")
    login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    bookings = relationship("Booking", back_populates="user")
    
    def is_locked(self, now: datetime = None) -> bool:
        now = now or datetime.now()
        return self.lock_until is not None and self.lock_until > now

# ================================
# Fleet
# ================================
class Bus(Base):
    __tablename__ = "buses"
    
    id = Column(Integer, primary_key=True, index=True)
    bus_number = Column(String(50), unique=True, nullable=False, index=True)
    registration_number = Column(String(50), unique=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    bus_type = Column(String(20), nullable=False)
    driver = Column(String(255), default="")
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    bookings = relationship("Booking", back_populates="bus")

class Driver(Base):
    __tablename__ = "drivers"
    
    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    license_number = Column(String(16), unique=True, nullable=False, index=True)
    license_expiry = Column(DateTime, nullable=False)
    contact_number = Column(String(10), unique=True, nullable=False, index=True)
    address = Column(Text, nullable=False)
    assigned_bus = Column(String(50), default="", index=True)
    availability_status = Column(String(20), nullable=False, default="Available", index=True)
    previous_status = Column(String(20), default="Available")
    profile_photo = Column(String(500), default=settings.DEFAULT_PROFILE_PHOTO)
    date_of_birth = Column(DateTime)
    experience = Column(Integer, default=0)
    salary = Column(Numeric(12, 2))
    join_date = Column(DateTime, default=datetime.now)
    is_active = Column(Boolean, default=True)
    license_expiry_warning = Column(Boolean, default=False)
    last_status_update = Column(DateTime, default=datetime.now)
    
    # Emergency contact lives and dies with the driver row
    emergency_contact_name = Column(String(100))
    emergency_contact_phone = Column(String(10))
    emergency_contact_relationship = Column(String(50))

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def emergency_contact(self):
        if not (self.emergency_contact_name or self.emergency_contact_phone or self.emergency_contact_relationship):
            return None
        return {
            "name": self.emergency_contact_name,
            "phone": self.emergency_contact_phone,
            "relationship": self.emergency_contact_relationship
        }

    @property
    def is_license_expired(self) -> bool:
        return self.license_expiry is not None and self.license_expiry <= datetime.now()

    @property
    def is_license_expiring_soon(self) -> bool:
        if self.license_expiry is None:
            return False
        now = datetime.now()
        return now < self.license_expiry <= now + timedelta(days=settings.LICENSE_WARNING_DAYS)

# ================================
# Schedules & Bookings
# ================================
class BusSchedule(Base):
    __tablename__ = "bus_schedules"
    
    id = Column(Integer, primary_key=True, index=True)
    bus_number = Column(String(50), nullable=False, index=True)
    route = Column(String(255), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    departure = Column(String(20), nullable=False)
    arrival = Column(String(20), nullable=False)
    driver = Column(String(255), nullable=False)
    fare = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="Scheduled")
    available_seats = Column(Integer, nullable=False, default=0)
    total_seats = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    bookings = relationship("Booking", back_populates="schedule")

class Booking(Base):
    __tablename__ = "bookings"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey("bus_schedules.id"), nullable=False, index=True)
    bus_id = Column(Integer, ForeignKey("buses.id"), nullable=False)
    from_location = Column(String(255), nullable=False)
    to_location = Column(String(255), nullable=False)
    travel_date = Column(DateTime, nullable=False)
    departure_time = Column(String(20), nullable=False)
    arrival_time = Column(String(20), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default="Pending")
    payment_method = Column(String(20), nullable=False, default="Online")
    booking_status = Column(String(20), nullable=False, default="Active", index=True)
    booking_reference = Column(String(32), unique=True, nullable=False, index=True)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(20), nullable=False)
    cancelled_at = Column(DateTime)
    cancellation_reason = Column(String(500), default="")
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    user = relationship("User", back_populates="bookings")
    schedule = relationship("BusSchedule", back_populates="bookings")
    bus = relationship("Bus", back_populates="bookings")
    passengers = relationship(
        "Passenger",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Passenger.position"
    )

class Passenger(Base):
    __tablename__ = "booking_passengers"
    
    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(10), nullable=False)
    seat_number = Column(String(10), nullable=False)
    
    # Relationships
    booking = relationship("Booking", back_populates="passengers")
