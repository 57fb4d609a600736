"""
Read access to trip schedules.

Stores hand back plain documents: dictionaries shaped like the CMS
collection, where relations are embedded objects once the requested depth
allows it and bare ids otherwise.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.models import Terminal, TripSchedule, TripStop
from src.schedules.exceptions import ScheduleStoreError

logger = logging.getLogger(__name__)


def _format_time(value) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


def _terminal_document(terminal: Optional[Terminal], terminal_id: str, depth: int) -> Any:
    if depth < 1 or terminal is None:
        return terminal_id
    return {"id": terminal.id, "name": terminal.name, "province": terminal.province}


class ScheduleStore:
    """Interface for schedule lookups"""

    def find_trip_schedule(self, trip_id: str, depth: int = 0) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class SqlAlchemyScheduleStore(ScheduleStore):
    """Schedule store backed by the relational models"""

    def __init__(self, db: Session):
        self.db = db

    def find_trip_schedule(self, trip_id: str, depth: int = 0) -> Optional[Dict[str, Any]]:
        try:
            query = self.db.query(TripSchedule)
            if depth >= 1:
                query = query.options(
                    joinedload(TripSchedule.stops).joinedload(TripStop.terminal),
                    joinedload(TripSchedule.from_terminal),
                )
            trip = query.filter(TripSchedule.id == trip_id).first()
        except SQLAlchemyError as e:
            logger.error("trip schedule lookup failed for %s: %s", trip_id, e)
            raise ScheduleStoreError(f"Schedule store unavailable: {e}") from e

        if trip is None:
            return None
        return self._to_document(trip, depth)

    def _to_document(self, trip: TripSchedule, depth: int) -> Dict[str, Any]:
        return {
            "id": trip.id,
            "name": trip.name,
            "is_active": bool(trip.is_active),
            "frequency": trip.frequency,
            "days": list(trip.days or []),
            "departure_time": _format_time(trip.departure_time),
            "price": trip.price,
            "bus_type_id": trip.bus_type_id,
            "from_terminal_id": _terminal_document(trip.from_terminal, trip.from_terminal_id, depth),
            "stops": [
                {
                    "terminal": _terminal_document(stop.terminal, stop.terminal_id, depth),
                    "time": _format_time(stop.time),
                    "is_pickup": bool(stop.is_pickup),
                    "is_dropoff": bool(stop.is_dropoff),
                }
                for stop in trip.stops
            ],
        }
