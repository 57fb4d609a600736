import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.bookings.schemas import SeatAvailability, SeatValidation, SeatValidationError
from src.date_utils import normalize_travel_date
from src.models import Ticket, TripSchedule, calculate_capacity

logger = logging.getLogger(__name__)


def extract_seat_id(seat_data: Any) -> Optional[str]:
    """Seat id from a bare id, a {"seat": ...} row or a seat document"""
    if not seat_data:
        return None
    if isinstance(seat_data, str):
        return seat_data
    if isinstance(seat_data, dict):
        seat = seat_data.get("seat")
        if seat:
            if isinstance(seat, str):
                return seat
            if isinstance(seat, dict):
                return seat.get("id") or seat.get("_id")
        return seat_data.get("id") or seat_data.get("_id") or seat_data.get("seatId")
    return None


def layout_seat_ids(seats: List[Dict[str, Any]]) -> List[str]:
    """Ids of bookable cells in a bus layout, in layout order"""
    seat_ids = []
    for idx, seat in enumerate(seats or []):
        if not isinstance(seat, dict) or seat.get("type") != "seat" or seat.get("disabled"):
            continue
        seat_id = seat.get("id") or seat.get("_id")
        if not isinstance(seat_id, str) or not seat_id:
            position = seat.get("position") or {}
            seat_id = f"{position.get('row')}-{position.get('col')}-{idx}"
        seat_ids.append(seat_id)
    return seat_ids


def is_reservation_expired(ticket: Ticket, now: datetime) -> bool:
    """Unpaid reservations stop holding seats once their payment deadline passes"""
    if not ticket.payment_deadline or ticket.is_paid or ticket.is_cancelled:
        return False
    deadline = ticket.payment_deadline
    if deadline.tzinfo is not None and now.tzinfo is None:
        deadline = deadline.astimezone().replace(tzinfo=None)
    return deadline < now


class SeatAvailabilityValidator:
    """Service for checking requested seats against a trip's layout and bookings"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock

    def validate(
        self,
        trip_id: Optional[str],
        travel_date: Any,
        seats: List[Any],
        exclude_ticket_id: Optional[str] = None
    ) -> SeatValidation:
        """Validate the seats of a new or updated ticket"""
        errors = []

        if not trip_id:
            errors.append(SeatValidationError(
                error_code="TRIP_REQUIRED",
                error_message="Trip is required to book seats.",
                field="trip"
            ))

        normalized_date = normalize_travel_date(travel_date) if travel_date else None
        if not travel_date:
            errors.append(SeatValidationError(
                error_code="DATE_REQUIRED",
                error_message="Travel date is required to book seats.",
                field="date"
            ))
        elif normalized_date is None:
            errors.append(SeatValidationError(
                error_code="INVALID_DATE",
                error_message="Invalid date format",
                field="date"
            ))

        seat_ids = [seat_id for seat_id in map(extract_seat_id, seats or []) if seat_id]
        if not seat_ids:
            errors.append(SeatValidationError(
                error_code="NO_SEATS",
                error_message="You must select at least one seat.",
                field="bookedSeats"
            ))

        if errors:
            return SeatValidation(is_valid=False, errors=errors)

        try:
            errors.extend(self._check_seats(trip_id, normalized_date, seat_ids, exclude_ticket_id))
        except SQLAlchemyError as e:
            logger.error("error validating booked seats for trip %s: %s", trip_id, e)
            errors.append(SeatValidationError(
                error_code="SEAT_VALIDATION_ERROR",
                error_message="Error validating seat selection. Please try again.",
                field="bookedSeats"
            ))

        return SeatValidation(is_valid=not errors, errors=errors)

    def available_seats(self, trip_id: str, travel_date: date) -> Optional[SeatAvailability]:
        """Capacity and taken seats of a trip on a date, or None for an unknown trip"""
        trip = self._get_trip(trip_id)
        if trip is None:
            return None
        seats = trip.bus_type.seats if trip.bus_type else []
        taken = self._taken_seats(trip_id, travel_date, exclude_ticket_id=None)
        capacity = calculate_capacity(seats)
        booked = sorted(taken)
        return SeatAvailability(
            trip_id=trip_id,
            travel_date=travel_date,
            capacity=capacity,
            booked_seats=booked,
            available_count=max(0, capacity - len(booked))
        )

    def _get_trip(self, trip_id: str) -> Optional[TripSchedule]:
        return self.db.query(TripSchedule).options(
            joinedload(TripSchedule.bus_type)
        ).filter(TripSchedule.id == trip_id).first()

    def _check_seats(
        self,
        trip_id: str,
        travel_date: date,
        seat_ids: List[str],
        exclude_ticket_id: Optional[str]
    ) -> List[SeatValidationError]:
        trip = self._get_trip(trip_id)
        if trip is None:
            return [SeatValidationError(
                error_code="TRIP_NOT_FOUND",
                error_message="Selected trip not found.",
                field="trip"
            )]

        valid_seat_ids = set(layout_seat_ids(trip.bus_type.seats if trip.bus_type else []))
        invalid_seats = [seat_id for seat_id in seat_ids if seat_id not in valid_seat_ids]
        if invalid_seats:
            return [SeatValidationError(
                error_code="INVALID_SEATS",
                error_message=(
                    f"The following seats are not valid for this trip: {', '.join(invalid_seats)}. "
                    "Please reselect your seats."
                ),
                field="bookedSeats"
            )]

        taken = self._taken_seats(trip_id, travel_date, exclude_ticket_id)
        conflicts = []
        for seat_id in seat_ids:
            holder = taken.get(seat_id)
            if holder:
                state = "booked" if holder.is_paid else "reserved"
                conflicts.append(f"Seat {seat_id} is already {state} (Ticket: {holder.ticket_number})")

        if conflicts:
            return [SeatValidationError(
                error_code="SEAT_TAKEN",
                error_message=", ".join(conflicts),
                field="bookedSeats"
            )]
        return []

    def _taken_seats(
        self,
        trip_id: str,
        travel_date: date,
        exclude_ticket_id: Optional[str]
    ) -> Dict[str, Ticket]:
        """Seat id -> ticket holding it on that trip and date"""
        query = self.db.query(Ticket).filter(
            Ticket.trip_id == trip_id,
            Ticket.date == travel_date,
            Ticket.is_cancelled.is_(False)
        )
        if exclude_ticket_id:
            query = query.filter(Ticket.id != exclude_ticket_id)

        now = self.clock()
        taken: Dict[str, Ticket] = {}
        for ticket in query.all():
            if is_reservation_expired(ticket, now):
                continue
            for seat_data in ticket.booked_seats or []:
                seat_id = extract_seat_id(seat_data)
                if seat_id:
                    taken[seat_id] = ticket
        return taken
