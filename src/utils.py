from datetime import datetime, time, date
from typing import Optional, Tuple

def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive local time; convert aware input to that"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)

def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """First and last instant of a calendar day"""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)
