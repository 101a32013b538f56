"""
Bus Schedules Module

Admin management of bus schedules and the queries the public search uses:

- service.py: schedule CRUD, route/day search and upcoming availability
- router.py: admin-only FastAPI endpoints
- schemas.py: Pydantic models and the schedule status enumeration
"""

from .router import router
from .service import ScheduleService
from .schemas import Schedule, ScheduleCreate, ScheduleUpdate, ScheduleStatus, ScheduleSearchResponse

__all__ = [
    "router",
    "ScheduleService",
    "Schedule",
    "ScheduleCreate",
    "ScheduleUpdate",
    "ScheduleStatus",
    "ScheduleSearchResponse"
]
