"""
Payment deadlines for unpaid reservations.

An unpaid ticket holds its seats until its payment deadline. The deadline
depends on how far away the departure is:

- more than 7 days: 48 hours to pay
- more than 1 day: 24 hours to pay
- otherwise: 2 hours before departure, or 30 / 15 minutes from now when
  that moment has already passed

Every deadline is at least 15 minutes from now.
"""

from datetime import date, datetime, timedelta
from typing import Any, Optional

from src.date_utils import parse_time_of_day

MINIMUM_GRACE = timedelta(minutes=15)
NO_DEPARTURE_GRACE = timedelta(hours=24)


def payment_deadline_for(trip: Any, travel_date: date, now: datetime) -> datetime:
    """Deadline for an unpaid ticket booked at `now` on `trip` for `travel_date`"""
    departure_clock = parse_time_of_day(getattr(trip, "departure_time", None))
    if departure_clock is None:
        return now + NO_DEPARTURE_GRACE

    departure = datetime.combine(travel_date, departure_clock)
    if now.tzinfo is not None:
        departure = departure.replace(tzinfo=now.tzinfo)
    time_to_departure = departure - now

    if time_to_departure > timedelta(days=7):
        deadline = now + timedelta(hours=48)
    elif time_to_departure > timedelta(days=1):
        deadline = now + timedelta(hours=24)
    else:
        deadline = departure - timedelta(hours=2)
        if deadline <= now:
            if time_to_departure > timedelta(minutes=30):
                deadline = now + timedelta(minutes=30)
            else:
                deadline = now + MINIMUM_GRACE

    return max(deadline, now + MINIMUM_GRACE)


def initial_payment_deadline(
    trip: Any,
    travel_date: Optional[date],
    is_paid: Optional[bool],
    current_deadline: Optional[datetime],
    now: datetime
) -> Optional[datetime]:
    """
    Deadline to store on a new ticket.

    An explicit deadline is kept as given. Paid tickets (tickets are paid
    unless marked otherwise) carry none.
    """
    if current_deadline is not None:
        return current_deadline
    if is_paid is not False or travel_date is None:
        return None
    return payment_deadline_for(trip, travel_date, now)
