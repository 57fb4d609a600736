import logging
from typing import Optional

from pydantic import ValidationError

from src.config import settings
from src.schedules.exceptions import InvalidTripId, ScheduleStoreError, TripScheduleNotFound
from src.schedules.schemas import TripSchedule
from src.schedules.store import ScheduleStore

logger = logging.getLogger(__name__)

class ScheduleResolver:
    """Loads a trip's recurrence rule, stops and active flag for booking checks"""

    def __init__(self, store: ScheduleStore, depth: Optional[int] = None):
        self.store = store
        self.depth = settings.SCHEDULE_FETCH_DEPTH if depth is None else depth

    def resolve(self, trip_id: str) -> TripSchedule:
        """
        Fetch the current schedule of a trip.

        Every call reads through to the store. Raises TripScheduleNotFound when
        the trip does not exist and ScheduleStoreError when the store fails or
        returns a document that does not describe a trip schedule.
        """
        if not isinstance(trip_id, str) or not trip_id.strip():
            raise InvalidTripId("Trip id must be a non-empty string")

        document = self.store.find_trip_schedule(trip_id, depth=self.depth)
        if document is None:
            raise TripScheduleNotFound(trip_id)

        try:
            return TripSchedule.model_validate(document)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("malformed trip schedule document for %s", trip_id)
            raise ScheduleStoreError(f"Malformed trip schedule {trip_id}") from e
