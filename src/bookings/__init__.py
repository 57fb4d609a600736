"""
Booking Validation Module

Rules that decide whether a bus ticket may be created:

- Booking window: the trip must be active, run on the travel date's
  weekday, and depart from the rider's boarding stop in the future; bookings
  inside the cutoff before departure are reserved for agents and above
- Seat availability: requested seats must exist in the bus layout and must
  not be held by another ticket for the same trip and date

Key Components:
- validator.py: BookingWindowValidator and the validate_ticket_date entry point
- seat_service.py: SeatAvailabilityValidator and seat layout helpers
- deadlines.py: payment deadlines that let unpaid reservations lapse
- router.py: FastAPI endpoints for both checks and seat availability
- schemas.py: Pydantic models for requests, results and rejection reasons
"""

from .router import router
from .validator import BookingWindowValidator, validate_ticket_date
from .seat_service import SeatAvailabilityValidator
from .deadlines import payment_deadline_for
from .schemas import (
    BookingRequest, ValidationResult, RejectionReason, REJECTION_MESSAGES,
    SeatValidation, SeatValidationError, SeatAvailability
)

__all__ = [
    "router",
    "BookingWindowValidator",
    "validate_ticket_date",
    "SeatAvailabilityValidator",
    "payment_deadline_for",
    "BookingRequest",
    "ValidationResult",
    "RejectionReason",
    "REJECTION_MESSAGES",
    "SeatValidation",
    "SeatValidationError",
    "SeatAvailability"
]
