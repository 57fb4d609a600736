"""
Trip Schedules Module

Read side of recurring bus trips. A trip schedule carries its recurrence
rule (daily or specific weekdays), its nominal departure time, the ordered
stops along the route and an active flag.

Key Components:
- store.py: ScheduleStore interface and its SQLAlchemy implementation,
  returning CMS-shaped documents with relations embedded up to a depth
- service.py: ScheduleResolver, materializing documents into TripSchedule
- router.py: FastAPI endpoint for looking up a trip schedule
- schemas.py: Pydantic models for schedules and stops
"""

from .router import router
from .service import ScheduleResolver
from .store import ScheduleStore, SqlAlchemyScheduleStore
from .exceptions import InvalidTripId, TripScheduleNotFound, ScheduleStoreError
from .schemas import Frequency, Weekday, TripSchedule, TripStop, TerminalRef

__all__ = [
    "router",
    "ScheduleResolver",
    "ScheduleStore",
    "SqlAlchemyScheduleStore",
    "InvalidTripId",
    "TripScheduleNotFound",
    "ScheduleStoreError",
    "Frequency",
    "Weekday",
    "TripSchedule",
    "TripStop",
    "TerminalRef"
]
