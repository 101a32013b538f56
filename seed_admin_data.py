#!/usr/bin/env python3
"""
Admin Seed Data Script

Creates the initial admin account for the bus fleet backend. Admin accounts
cannot self-register through the API, so this is the way to bootstrap one.

Usage:
    python seed_admin_data.py
    python seed_admin_data.py --email ops@example.com --password 'S3cret!'

Credentials can also come from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.
"""

import argparse
import os
import sys

from sqlalchemy import text

from src.auth.schemas import Role, UserCreate
from src.auth.service import UserService
from src.database import SessionLocal, engine, init_db
from src.exceptions import ValidationError

DEFAULT_ADMIN_EMAIL = "admin@busfleet.example.com"
DEFAULT_ADMIN_PASSWORD = "Admin123!"
DEFAULT_ADMIN_NAME = "Fleet Administrator"

def parse_args():
    parser = argparse.ArgumentParser(description="Create the initial admin account")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", DEFAULT_ADMIN_NAME))
    parser.add_argument("--phone", default=os.getenv("ADMIN_PHONE"))
    return parser.parse_args()

def verify_database_connection():
    """Verify database connection"""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1")).fetchone()
        print("✅ Database connection successful")
        return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False

def create_admin_user(db, email, password, full_name, phone=None):
    """Create the admin account unless the email is already taken"""
    print("🔧 Creating admin account...")
    
    existing = UserService.get_user_by_email(db, email)
    if existing:
        if existing.role != Role.ADMIN.value:
            print(f"⚠️  {email} exists as a {existing.role} account, not touching it")
            return False
        print(f"✅ Admin {email} already exists, skipping...")
        return True
    
    account = UserCreate(email=email, password=password, full_name=full_name, phone=phone)
    UserService.create_user(db, account, role=Role.ADMIN)
    print(f"✅ Created admin account {email}")
    return True

def main():
    """Main function to seed admin data"""
    args = parse_args()
    print("🚀 Starting admin account seeding...")
    print("=" * 50)
    
    if not verify_database_connection():
        print("❌ Aborting due to database connection issues")
        return False
    
    init_db()
    db = SessionLocal()
    
    try:
        if not create_admin_user(db, args.email, args.password, args.name, args.phone):
            return False
        
        print("=" * 50)
        print("✅ Admin seeding completed successfully!")
        print()
        print("🌐 Log in at:")
        print("   • Admin Auth: POST /api/admin/auth/login")
        print("   • API Documentation: http://localhost:8000/docs")
        return True
    
    except ValidationError as e:
        print(f"❌ Error during seeding: {e.detail}")
        db.rollback()
        return False
    
    finally:
        db.close()

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
