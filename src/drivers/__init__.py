"""
Driver Management Module

Driver records for the bus fleet together with the license lifecycle:

- lifecycle.py: pure status derivation driven by license expiry
- service.py: driver CRUD, bus assignment, reactivation and the expiry sweep
- storage.py: profile photo storage on local disk
- router.py: admin-only FastAPI endpoints
- schemas.py: Pydantic models and the driver status enumeration
"""

from .router import router
from .service import DriverService
from .lifecycle import LicenseState, LicenseTransition, derive_status, apply_license_rules
from .schemas import DriverStatus

__all__ = [
    "router",
    "DriverService",
    "LicenseState",
    "LicenseTransition",
    "derive_status",
    "apply_license_rules",
    "DriverStatus"
]
