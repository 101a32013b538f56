#!/usr/bin/env python3

import sys
from datetime import datetime, time, timedelta
from decimal import Decimal

from src.database import SessionLocal, init_db
from src.drivers.service import DriverService
from src.models import Booking, Bus, BusSchedule, Driver, Passenger

BUSES = [
    # bus_number, registration_number, capacity, bus_type
    ("GSRTC-101", "GJ01AB1001", 40, "AC"),
    ("GSRTC-102", "GJ01AB1002", 36, "Sleeper"),
    ("GSRTC-201", "GJ05CD2001", 50, "Non-AC"),
    ("GSRTC-202", "GJ05CD2002", 45, "Seater"),
]

DRIVERS = [
    # full_name, license_number, days until expiry, contact_number, status
    ("Ramesh Patel", "GJ07DL8932", 400, "9825011111", "Available"),
    ("Suresh Kumar", "GJ01DL2019", 20, "9825022222", "Available"),
    ("Mahesh Desai", "GJ05DL7741", 250, "9825033333", "On Leave"),
    ("Dinesh Shah", "GJ06DL5530", -3, "9825044444", "Available"),
]

ROUTES = [
    # route, departure, arrival, fare
    ("Ahmedabad - Surat", "06:30", "11:00", Decimal("350.00")),
    ("Surat - Mumbai", "08:00", "14:30", Decimal("600.00")),
    ("Ahmedabad - Vadodara", "09:15", "11:15", Decimal("180.00")),
    ("Mumbai - Pune", "17:00", "21:00", Decimal("450.00")),
]

def create_seed_data(days=7):
    init_db()
    db = SessionLocal()
    
    try:
        print("🚀 Creating seed data for the bus fleet...")
        
        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(Passenger).delete()
        db.query(Booking).delete()
        db.query(BusSchedule).delete()
        db.query(Driver).delete()
        db.query(Bus).delete()
        db.commit()
        
        print("Creating buses...")
        buses = []
        for bus_number, registration_number, capacity, bus_type in BUSES:
            bus = Bus(
                bus_number=bus_number,
                registration_number=registration_number,
                capacity=capacity,
                bus_type=bus_type,
                status="Active"
            )
            db.add(bus)
            buses.append(bus)
        db.commit()
        
        print("Creating drivers...")
        now = datetime.now()
        for index, (full_name, license_number, expiry_days, contact_number, status) in enumerate(DRIVERS):
            db.add(Driver(
                full_name=full_name,
                license_number=license_number,
                license_expiry=now + timedelta(days=expiry_days),
                contact_number=contact_number,
                address=f"{index + 12} Station Road, Gujarat",
                availability_status=status,
                previous_status=status,
                experience=5 + index * 3,
                salary=Decimal("32000.00") + index * 2500
            ))
        db.commit()
        
        print("Creating schedules...")
        today = now.date()
        schedule_count = 0
        for day in range(days):
            travel_day = today + timedelta(days=day)
            for (route, departure, arrival, fare), bus in zip(ROUTES, buses):
                hour, minute = (int(part) for part in departure.split(":"))
                db.add(BusSchedule(
                    bus_number=bus.bus_number,
                    route=route,
                    date=datetime.combine(travel_day, time(hour, minute)),
                    departure=departure,
                    arrival=arrival,
                    driver=DRIVERS[schedule_count % 3][0],
                    fare=fare,
                    status="Scheduled",
                    total_seats=bus.capacity,
                    available_seats=bus.capacity
                ))
                schedule_count += 1
        db.commit()
        
        # Seeded licenses include an expired one; bring statuses in line
        result = DriverService(db).reconcile_license_statuses()
        
        print("✅ Seed data created successfully!")
        print(f"   • {len(BUSES)} buses")
        print(f"   • {len(DRIVERS)} drivers ({result.expired} expired, {result.expiring} expiring soon)")
        print(f"   • {schedule_count} schedules over {days} days")
        return True
    
    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        return False
    
    finally:
        db.close()

if __name__ == "__main__":
    sys.exit(0 if create_seed_data() else 1)
