from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from src.auth.dependencies import get_optional_requester, require_role
from src.auth.roles import Role
from src.auth.schemas import AppUser
from src.database import get_db
from src.bookings.schemas import (
    BookingDateValidationRequest, BookingRequest, ValidationResult,
    SeatValidationRequest, SeatValidation, SeatAvailability
)
from src.bookings.seat_service import SeatAvailabilityValidator
from src.bookings.validator import BookingWindowValidator
from src.date_utils import normalize_travel_date
from src.schedules.router import get_schedule_resolver
from src.schedules.service import ScheduleResolver

router = APIRouter()

def get_booking_window_validator(
    resolver: ScheduleResolver = Depends(get_schedule_resolver)
) -> BookingWindowValidator:
    return BookingWindowValidator(resolver)

def get_seat_validator(db: Session = Depends(get_db)) -> SeatAvailabilityValidator:
    return SeatAvailabilityValidator(db)

@router.post("/validate-date", response_model=ValidationResult)
def validate_booking_date(
    body: BookingDateValidationRequest,
    requester: Optional[AppUser] = Depends(get_optional_requester),
    validator: BookingWindowValidator = Depends(get_booking_window_validator)
):
    """Check a trip and travel date against the booking window"""
    request = BookingRequest(
        trip_id=body.trip_id,
        travel_date=body.travel_date,
        boarding_terminal_id=body.boarding_terminal_id,
        requester=requester
    )
    return validator.validate(request)

@router.post("/validate-seats", response_model=SeatValidation)
def validate_booking_seats(
    body: SeatValidationRequest,
    _agent: AppUser = Depends(require_role(Role.AGENT)),
    validator: SeatAvailabilityValidator = Depends(get_seat_validator)
):
    """Check requested seats exist on the bus and are not already taken"""
    return validator.validate(
        trip_id=body.trip_id,
        travel_date=body.travel_date,
        seats=body.seats,
        exclude_ticket_id=body.exclude_ticket_id
    )

@router.get("/trips/{trip_id}/seats", response_model=SeatAvailability)
def get_seat_availability(
    trip_id: str,
    travel_date: str = Query(..., alias="date", description="Travel date, Gregorian or Persian"),
    validator: SeatAvailabilityValidator = Depends(get_seat_validator)
):
    """Get capacity and taken seats for a trip on a date"""
    normalized_date = normalize_travel_date(travel_date)
    if normalized_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format"
        )

    availability = validator.available_seats(trip_id, normalized_date)
    if availability is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip schedule not found"
        )
    return availability
