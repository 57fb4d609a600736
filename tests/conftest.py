import copy
import os
from datetime import datetime, time
from decimal import Decimal
from typing import Dict, Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from src.database import Base
from src.models import BusType, Terminal, TripSchedule, TripStop
from src.schedules.store import ScheduleStore

# Monday
NOW = datetime(2026, 10, 19, 7, 0)


class FakeScheduleStore(ScheduleStore):
    """
    In-memory schedule store. Hands out copies so callers cannot mutate the
    stored documents, and records every lookup.
    """

    def __init__(self, documents: Optional[Dict[str, dict]] = None, error: Optional[Exception] = None):
        self.documents = documents or {}
        self.error = error
        self.calls = []

    def find_trip_schedule(self, trip_id, depth=0):
        self.calls.append((trip_id, depth))
        if self.error is not None:
            raise self.error
        document = self.documents.get(trip_id)
        return copy.deepcopy(document) if document is not None else None


def trip_document(**overrides) -> dict:
    document = {
        "id": "trip-1",
        "name": "VIP | Kabul - Parwan - Mazar | 08:00 | Daily",
        "is_active": True,
        "frequency": "daily",
        "days": [],
        "departure_time": "08:00",
        "stops": [
            {"terminal": "t-kabul", "time": "08:00", "is_pickup": True, "is_dropoff": False},
            {"terminal": {"id": "t-parwan", "name": "Charikar Terminal"}, "time": "09:30"},
            {"terminal": "t-balkh", "time": "17:00", "is_pickup": False, "is_dropoff": True},
        ],
    }
    document.update(overrides)
    return document


@pytest.fixture()
def db_engine():
    """
    Isolated in-memory SQLite engine shared by every session of one test.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    with Session(db_engine) as s:
        yield s


def seat_layout():
    return [
        {"id": "driver", "type": "driver", "position": {"row": 1, "col": 1}},
        {"id": "S1", "type": "seat", "seatNumber": "1", "position": {"row": 2, "col": 1}},
        {"id": "S2", "type": "seat", "seatNumber": "2", "position": {"row": 2, "col": 3}},
        {"id": "S3", "type": "seat", "seatNumber": "3", "position": {"row": 3, "col": 1}},
        {"id": "S4", "type": "seat", "seatNumber": "4", "position": {"row": 3, "col": 3}, "disabled": True},
        {"type": "seat", "seatNumber": "5", "position": {"row": 4, "col": 1}},
        {"id": "wc", "type": "wc", "position": {"row": 4, "col": 3}},
    ]


@pytest.fixture()
def seeded_trip(db_session):
    """Daily 08:00 Kabul - Parwan - Mazar trip with a small VIP bus"""
    kabul = Terminal(id="t-kabul", name="Kabul Central Terminal", province="Kabul")
    parwan = Terminal(id="t-parwan", name="Charikar Terminal", province="Parwan")
    balkh = Terminal(id="t-balkh", name="Mazar-i-Sharif Terminal", province="Balkh")
    herat = Terminal(id="t-herat", name="Herat Terminal", province="Herat", is_active=False)
    db_session.add_all([kabul, parwan, balkh, herat])

    bus_type = BusType(id="bt-vip", name="VIP 2+1", seats=seat_layout())
    db_session.add(bus_type)
    db_session.flush()

    trip = TripSchedule(
        id="trip-1",
        name="VIP | Kabul - Parwan - Mazar | 08:00 | Daily",
        price=Decimal("1500"),
        bus_type_id=bus_type.id,
        from_terminal_id=kabul.id,
        departure_time=time(8, 0),
        frequency="daily",
    )
    # Added out of order on purpose; stops come back by position
    trip.stops = [
        TripStop(terminal_id=balkh.id, position=2, time=time(17, 0), is_pickup=False),
        TripStop(terminal_id=kabul.id, position=0, time=time(8, 0), is_dropoff=False),
        TripStop(terminal_id=parwan.id, position=1, time=time(9, 30)),
    ]
    db_session.add(trip)
    db_session.commit()
    return trip
