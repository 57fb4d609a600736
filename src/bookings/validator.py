"""
Booking window validation.

Decides whether a ticket may be created for a trip on a travel date:
the trip must be active, must run on that weekday, must not have departed
from the rider's boarding stop yet, and must be at least the cutoff
(2 hours by default) away unless the requester is an agent or above.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Union

from src.auth.roles import coerce_requester, has_role
from src.auth.schemas import AppUser
from src.bookings.schemas import (
    REJECTION_MESSAGES, BookingRequest, RejectionReason, ValidationResult
)
from src.config import settings
from src.date_utils import format_day_names, normalize_travel_date, parse_time_of_day, weekday_token
from src.schedules.exceptions import ScheduleStoreError, TripScheduleNotFound
from src.schedules.schemas import Frequency
from src.schedules.service import ScheduleResolver

DateNormalizer = Callable[[Union[str, date]], Optional[date]]


class BookingWindowValidator:
    """Accept or reject a booking attempt against its trip's schedule"""

    def __init__(
        self,
        resolver: ScheduleResolver,
        clock: Callable[[], datetime] = datetime.now,
        normalize_date: DateNormalizer = normalize_travel_date,
        logger: Optional[logging.Logger] = None,
        cutoff_hours: Optional[float] = None,
        override_role: Optional[str] = None,
    ):
        self.resolver = resolver
        self.clock = clock
        self.normalize_date = normalize_date
        self.logger = logger or logging.getLogger(__name__)
        self.cutoff_hours = settings.BOOKING_CUTOFF_HOURS if cutoff_hours is None else cutoff_hours
        self.override_role = override_role or settings.BOOKING_CUTOFF_OVERRIDE_ROLE

    def validate(self, request: BookingRequest) -> ValidationResult:
        # Incomplete forms are checked again once both fields are filled in
        if not _present(request.trip_id) or not _present(request.travel_date):
            return ValidationResult.accepted()

        try:
            return self._validate(request)
        except Exception as e:
            self.logger.exception("error validating booking date for trip %s", request.trip_id)
            return ValidationResult.rejected(RejectionReason.VALIDATION_ERROR, cause=repr(e))

    def _validate(self, request: BookingRequest) -> ValidationResult:
        try:
            trip = self.resolver.resolve(request.trip_id)
        except TripScheduleNotFound:
            self.logger.info("booking rejected: trip %s not found", request.trip_id)
            return ValidationResult.rejected(RejectionReason.TRIP_INACTIVE)
        except ScheduleStoreError as e:
            self.logger.error("booking rejected: schedule store failed for trip %s: %s", request.trip_id, e)
            return ValidationResult.rejected(RejectionReason.VALIDATION_ERROR, cause=repr(e))

        if not trip.is_active:
            return ValidationResult.rejected(RejectionReason.TRIP_INACTIVE)

        travel_date = self.normalize_date(request.travel_date)
        if travel_date is None:
            return ValidationResult.rejected(RejectionReason.INVALID_DATE_FORMAT)

        # Weekday of the travel date itself, even if the boarding stop is past midnight
        if trip.frequency == Frequency.SPECIFIC_DAYS:
            running_days = [day.value for day in trip.days]
            if weekday_token(travel_date) not in running_days:
                day_names = format_day_names(running_days)
                return ValidationResult.rejected(
                    RejectionReason.DAY_NOT_SCHEDULED,
                    REJECTION_MESSAGES[RejectionReason.DAY_NOT_SCHEDULED].format(days=", ".join(day_names)),
                    allowed_days=day_names,
                )

        departure_time = trip.departure_time
        boarding_stop = trip.stop_for_terminal(request.boarding_terminal_id)
        if boarding_stop is not None and boarding_stop.time:
            departure_time = boarding_stop.time

        # Trips without a departure time skip the time checks
        if not _present(departure_time):
            return ValidationResult.accepted()

        departure_clock = parse_time_of_day(departure_time)
        if departure_clock is None:
            return ValidationResult.rejected(RejectionReason.INVALID_DEPARTURE_TIME)

        now = self.clock()
        departure = datetime.combine(travel_date, departure_clock)
        if now.tzinfo is not None:
            departure = departure.replace(tzinfo=now.tzinfo)

        hours_until_departure = (departure - now).total_seconds() / 3600
        if hours_until_departure <= 0:
            return ValidationResult.rejected(
                RejectionReason.ALREADY_DEPARTED,
                hours_until_departure=hours_until_departure,
            )

        if hours_until_departure < self.cutoff_hours and not has_role(request.requester, self.override_role):
            return ValidationResult.rejected(
                RejectionReason.TOO_CLOSE_TO_DEPARTURE,
                REJECTION_MESSAGES[RejectionReason.TOO_CLOSE_TO_DEPARTURE].format(hours=self.cutoff_hours),
                hours_until_departure=hours_until_departure,
            )

        return ValidationResult.accepted(hours_until_departure=hours_until_departure)


def _present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def validate_ticket_date(
    validator: BookingWindowValidator,
    trip_id: Optional[str],
    travel_date: Union[str, date, None],
    boarding_terminal_id: Optional[str] = None,
    requester: Union[AppUser, Mapping, str, None] = None,
) -> Dict[str, Any]:
    """
    Validate a ticket's travel date from loosely typed inputs.

    `requester` may be an AppUser, a {id, roles, isActive} mapping or a bare
    role name. Returns {"ok": True} or {"ok": False, "reason", "message"}.
    """
    try:
        request = BookingRequest(
            trip_id=trip_id,
            travel_date=travel_date,
            boarding_terminal_id=boarding_terminal_id,
            requester=coerce_requester(requester),
        )
    except ValueError as e:
        validator.logger.warning("unusable booking request for trip %s: %s", trip_id, e)
        return ValidationResult.rejected(RejectionReason.VALIDATION_ERROR, cause=repr(e)).to_contract()
    return validator.validate(request).to_contract()
