class InvalidTripId(ValueError):
    """Trip id is missing or blank"""


class TripScheduleNotFound(LookupError):
    """No trip schedule matches the id"""

    def __init__(self, trip_id: str):
        super().__init__(f"Trip schedule {trip_id} not found")
        self.trip_id = trip_id


class ScheduleStoreError(RuntimeError):
    """Schedule store unreachable or returned malformed data"""
