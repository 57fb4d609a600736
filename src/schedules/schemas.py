from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from decimal import Decimal
from enum import Enum

from src.date_utils import format_time_of_day

class Frequency(str, Enum):
    """Trip recurrence rule"""
    DAILY = "daily"
    SPECIFIC_DAYS = "specific-days"

class Weekday(str, Enum):
    SUN = "sun"
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"

def terminal_identity(value: Any) -> Any:
    """Reduce a terminal reference to its id; embedded documents carry it under "id" """
    if isinstance(value, dict):
        return value.get("id")
    return value

class TerminalRef(BaseModel):
    id: str
    name: Optional[str] = None
    province: Optional[str] = None

class TripStop(BaseModel):
    """One stop along a trip, in route order"""
    terminal_id: str
    terminal: Optional[TerminalRef] = None
    time: Optional[str] = None
    is_pickup: bool = True
    is_dropoff: bool = True

    @field_validator("time", mode="before")
    @classmethod
    def _clock_time(cls, value):
        return format_time_of_day(value)

    @classmethod
    def from_document(cls, document: dict) -> "TripStop":
        raw_terminal = document.get("terminal", document.get("terminal_id"))
        return cls(
            terminal_id=terminal_identity(raw_terminal),
            terminal=raw_terminal if isinstance(raw_terminal, dict) else None,
            time=document.get("time"),
            is_pickup=document.get("is_pickup", document.get("isPickup", True)),
            is_dropoff=document.get("is_dropoff", document.get("isDropoff", True)),
        )

class TripSchedule(BaseModel):
    """Recurring trip as seen by booking checks"""
    id: str
    name: Optional[str] = None
    is_active: bool = False
    frequency: Frequency = Frequency.DAILY
    days: List[Weekday] = Field(default_factory=list)
    departure_time: Optional[str] = None
    stops: List[TripStop] = Field(default_factory=list)
    price: Optional[Decimal] = None
    bus_type_id: Optional[str] = None
    from_terminal_id: Optional[str] = None

    @field_validator("days", mode="before")
    @classmethod
    def _flatten_days(cls, value):
        # CMS-style documents store days as [{"day": "mon"}, ...]
        if value is None:
            return []
        return [item.get("day") if isinstance(item, dict) else item for item in value]

    @field_validator("stops", mode="before")
    @classmethod
    def _materialize_stops(cls, value):
        if value is None:
            return []
        return [
            TripStop.from_document(item) if isinstance(item, dict) else item
            for item in value
        ]

    @field_validator("departure_time", mode="before")
    @classmethod
    def _clock_time(cls, value):
        return format_time_of_day(value)

    @field_validator("bus_type_id", "from_terminal_id", mode="before")
    @classmethod
    def _reference_id(cls, value):
        return terminal_identity(value)

    def stop_for_terminal(self, terminal_id: Optional[str]) -> Optional[TripStop]:
        """First stop served at the given terminal"""
        if not terminal_id:
            return None
        for stop in self.stops:
            if stop.terminal_id == terminal_id:
                return stop
        return None
