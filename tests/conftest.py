import itertools
import os
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="bus-fleet-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import Base, get_db
from src.models import User, Bus, BusSchedule, Driver
from src.auth.utils import get_password_hash, create_access_token
from src.main import app

PASSWORD = "secret123"

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()
    
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def make_user(db_session):
    counter = itertools.count(1)
    
    def _make(role="user", email=None, password=PASSWORD):
        n = next(counter)
        user = User(
            email=email or f"{role}{n}@example.com",
            password=get_password_hash(password),
            full_name=f"{role.title()} {n}",
            phone="9876543210",
            role=role
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make

def auth_headers(user):
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def customer(make_user):
    return make_user("user")

@pytest.fixture
def admin(make_user):
    return make_user("admin")

@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)

@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)

@pytest.fixture
def make_bus(db_session):
    counter = itertools.count(1)
    
    def _make(**overrides):
        n = next(counter)
        fields = dict(
            bus_number=f"BUS-{n:03d}",
            registration_number=f"GJ01AB{n:04d}",
            capacity=40,
            bus_type="AC",
            status="Active"
        )
        fields.update(overrides)
        bus = Bus(**fields)
        db_session.add(bus)
        db_session.commit()
        db_session.refresh(bus)
        return bus
    return _make

@pytest.fixture
def make_schedule(db_session):
    def _make(bus_number, **overrides):
        fields = dict(
            bus_number=bus_number,
            route="Mumbai - Pune",
            date=datetime.now() + timedelta(days=3),
            departure="09:00",
            arrival="13:00",
            driver="Ramesh Patel",
            fare=Decimal("450.00"),
            status="Scheduled",
            total_seats=40,
            available_seats=40
        )
        fields.update(overrides)
        schedule = BusSchedule(**fields)
        db_session.add(schedule)
        db_session.commit()
        db_session.refresh(schedule)
        return schedule
    return _make

@pytest.fixture
def make_driver(db_session):
    counter = itertools.count(1)
    
    def _make(**overrides):
        n = next(counter)
        fields = dict(
            full_name=f"Driver {n}",
            license_number=f"GJ07DL{n:06d}",
            license_expiry=datetime.now() + timedelta(days=365),
            contact_number=f"98765{n:05d}",
            address="12 Station Road, Ahmedabad",
            availability_status="Available",
            previous_status="Available",
            is_active=True,
            license_expiry_warning=False
        )
        fields.update(overrides)
        driver = Driver(**fields)
        db_session.add(driver)
        db_session.commit()
        db_session.refresh(driver)
        return driver
    return _make

def booking_payload(schedule_id, seats=("A1",)):
    return {
        "schedule_id": schedule_id,
        "passengers": [
            {"name": f"Passenger {seat}", "age": 30, "gender": "Female", "seat_number": seat}
            for seat in seats
        ],
        "contact_email": "rider@example.com",
        "contact_phone": "9876543210",
        "payment_method": "Card",
    }
