#!/usr/bin/env python3
"""
License expiry sweep.

Runs the same reconciliation as ``POST /api/drivers/update-expired-licenses``
without going through the API. Meant for cron, e.g. once a night:

    0 1 * * * cd /srv/bus-fleet && python license_expiry_check.py
"""

import logging
import sys

from src.database import SessionLocal
from src.drivers.service import DriverService
from src.middleware import configure_logging

logger = logging.getLogger("license_expiry_check")

def run_license_check():
    db = SessionLocal()
    try:
        service = DriverService(db)
        result = service.reconcile_license_statuses()
        
        for driver in service.get_expired_drivers(result.checked_at):
            logger.warning(
                "Expired license: %s (%s) expired %s",
                driver.full_name, driver.license_number, driver.license_expiry.date()
            )
        for driver in service.get_drivers_with_expiring_licenses(result.checked_at):
            days_left = (driver.license_expiry - result.checked_at).days
            logger.info(
                "Expiring license: %s (%s) in %d days",
                driver.full_name, driver.license_number, days_left
            )
        return result
    finally:
        db.close()

def main():
    configure_logging()
    try:
        result = run_license_check()
    except Exception:
        logger.exception("License expiry sweep failed")
        return 1
    
    logger.info(
        "Sweep finished: %d deactivated, %d restored, %d expiring, %d expired",
        result.deactivated, result.restored, result.expiring, result.expired
    )
    return 0

if __name__ == "__main__":
    sys.exit(main())
