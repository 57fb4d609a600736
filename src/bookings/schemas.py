from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime
from enum import Enum

from src.auth.schemas import AppUser
from src.schedules.schemas import terminal_identity

class RejectionReason(str, Enum):
    """Why a booking date was refused"""
    TRIP_INACTIVE = "trip_inactive"
    INVALID_DATE_FORMAT = "invalid_date_format"
    DAY_NOT_SCHEDULED = "day_not_scheduled"
    INVALID_DEPARTURE_TIME = "invalid_departure_time"
    ALREADY_DEPARTED = "already_departed"
    TOO_CLOSE_TO_DEPARTURE = "too_close_to_departure"
    VALIDATION_ERROR = "validation_error"

# English defaults; localized wording is chosen by the client from the reason code
REJECTION_MESSAGES = {
    RejectionReason.TRIP_INACTIVE: "Selected trip is not active",
    RejectionReason.INVALID_DATE_FORMAT: "Invalid date format",
    RejectionReason.DAY_NOT_SCHEDULED: "This trip only runs on: {days}",
    RejectionReason.INVALID_DEPARTURE_TIME: "Invalid departure time format",
    RejectionReason.ALREADY_DEPARTED: "Cannot book tickets for trips that have already departed",
    RejectionReason.TOO_CLOSE_TO_DEPARTURE: (
        "Booking is not allowed within {hours:g} hours of departure time. "
        "Please book your ticket at least {hours:g} hours before departure"
    ),
    RejectionReason.VALIDATION_ERROR: "Error validating trip date",
}

# Booking date validation
class BookingRequest(BaseModel):
    """One booking attempt to check against the trip's booking window"""
    trip_id: Optional[str] = None
    travel_date: Optional[Union[datetime, date, str]] = None
    boarding_terminal_id: Optional[str] = None
    requester: Optional[AppUser] = None

    @field_validator("trip_id", "boarding_terminal_id", mode="before")
    @classmethod
    def _reference_id(cls, value):
        return terminal_identity(value)

class BookingDateValidationRequest(BaseModel):
    """Request body for validating a travel date; the requester comes from the bearer token"""
    trip_id: Optional[str] = None
    travel_date: Optional[str] = Field(None, description="Gregorian ISO date or Persian calendar date")
    boarding_terminal_id: Optional[str] = None

class ValidationResult(BaseModel):
    ok: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None
    allowed_days: Optional[List[str]] = None
    hours_until_departure: Optional[float] = None
    cause: Optional[str] = Field(default=None, exclude=True)

    @classmethod
    def accepted(cls, hours_until_departure: Optional[float] = None) -> "ValidationResult":
        return cls(ok=True, hours_until_departure=hours_until_departure)

    @classmethod
    def rejected(cls, reason: RejectionReason, message: Optional[str] = None, **extra) -> "ValidationResult":
        return cls(
            ok=False,
            reason=reason,
            message=message or REJECTION_MESSAGES[reason],
            **extra
        )

    def to_contract(self) -> Dict[str, Any]:
        """Plain {ok, reason, message} shape handed to the ticket workflow"""
        if self.ok:
            return {"ok": True}
        return {"ok": False, "reason": self.reason.value, "message": self.message}

# Seat validation
class SeatValidationRequest(BaseModel):
    trip_id: Optional[str] = None
    travel_date: Optional[str] = None
    seats: List[Union[str, Dict[str, Any]]] = []
    exclude_ticket_id: Optional[str] = Field(None, description="Ticket being updated, ignored for conflicts")

class SeatValidationError(BaseModel):
    error_code: str
    error_message: str
    field: Optional[str] = None

class SeatValidation(BaseModel):
    is_valid: bool
    errors: List[SeatValidationError] = []

class SeatAvailability(BaseModel):
    trip_id: str
    travel_date: date
    capacity: int
    booked_seats: List[str] = []
    available_count: int
