"""
License-driven driver status rules.

``derive_status`` is the single source of the expiry state machine. It is
pure: it receives a snapshot of the license-related fields plus the current
time and returns the snapshot the driver should be saved with. Every driver
write path and the bulk sweep go through ``apply_license_rules``.

Rules:

- license expired and status is not Inactive: remember the status in
  ``previous_status`` and mark the driver Inactive.
- license valid, status Inactive and a usable ``previous_status``: restore it.
- ``license_expiry_warning`` is set iff the license expires within the
  warning window.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from src.config import settings
from src.drivers.schemas import DriverStatus

INACTIVE = DriverStatus.INACTIVE.value

class LicenseTransition(str, Enum):
    DEACTIVATED = "deactivated"
    RESTORED = "restored"

class LicenseState(BaseModel):
    """License-related fields of a driver at one instant"""
    availability_status: str
    previous_status: Optional[str]
    license_expiry: datetime
    is_active: bool
    license_expiry_warning: bool
    last_status_update: Optional[datetime] = None
    
    class Config:
        frozen = True

def derive_status(
    current: LicenseState,
    now: datetime,
    warning_days: Optional[int] = None
) -> LicenseState:
    """Return the state a driver must hold at ``now``"""
    if warning_days is None:
        warning_days = settings.LICENSE_WARNING_DAYS
    
    state = current
    expiry = current.license_expiry
    
    if expiry <= now:
        if state.availability_status != INACTIVE:
            state = state.model_copy(update=dict(
                previous_status=state.availability_status,
                availability_status=INACTIVE,
                is_active=False,
                last_status_update=now
            ))
    elif (
        state.availability_status == INACTIVE
        and state.previous_status
        and state.previous_status != INACTIVE
    ):
        state = state.model_copy(update=dict(
            availability_status=state.previous_status,
            is_active=True,
            license_expiry_warning=False,
            last_status_update=now
        ))
    
    warning = now < expiry <= now + timedelta(days=warning_days)
    if warning != state.license_expiry_warning:
        state = state.model_copy(update={"license_expiry_warning": warning})
    
    return state

def snapshot(driver) -> LicenseState:
    return LicenseState(
        availability_status=driver.availability_status,
        previous_status=driver.previous_status,
        license_expiry=driver.license_expiry,
        is_active=bool(driver.is_active),
        license_expiry_warning=bool(driver.license_expiry_warning),
        last_status_update=driver.last_status_update
    )

def apply_license_rules(driver, now: datetime) -> Optional[LicenseTransition]:
    """Write the derived state onto a driver row; report a status change if any"""
    before = snapshot(driver)
    after = derive_status(before, now)
    
    if after == before:
        return None
    
    driver.availability_status = after.availability_status
    driver.previous_status = after.previous_status
    driver.is_active = after.is_active
    driver.license_expiry_warning = after.license_expiry_warning
    driver.last_status_update = after.last_status_update
    
    if before.availability_status != INACTIVE and after.availability_status == INACTIVE:
        return LicenseTransition.DEACTIVATED
    if before.availability_status == INACTIVE and after.availability_status != INACTIVE:
        return LicenseTransition.RESTORED
    return None
