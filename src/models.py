import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Time, Text, ForeignKey, Numeric, JSON, event, select
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def calculate_capacity(seats) -> int:
    """Count bookable cells in a bus seat layout"""
    total_seats = 0
    for item in seats or []:
        if isinstance(item, dict) and item.get("type") == "seat" and not item.get("disabled"):
            total_seats += 1
    return total_seats

# ================================
# Users & Roles
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(32), unique=True, index=True)
    password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user_roles = relationship("UserHasRole", back_populates="user")
    tickets = relationship("Ticket", back_populates="booked_by")

class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user_roles = relationship("UserHasRole", back_populates="role")

class UserHasRole(Base):
    __tablename__ = "user_has_roles"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", back_populates="user_roles")

# ================================
# Terminals
# ================================
class Terminal(Base):
    __tablename__ = "terminals"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, index=True)
    province = Column(String(100), nullable=False, index=True)
    address = Column(Text)
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# ================================
# Bus Types & Seat Layouts
# ================================
class BusType(Base):
    __tablename__ = "bus_types"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(120), nullable=False)
    amenities = Column(JSON, default=list)
    # Layout cells: {"id", "type": seat|wc|driver|door, "seatNumber", "position": {"row", "col"}, "disabled"}
    seats = Column(JSON, nullable=False, default=list)
    capacity = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    trip_schedules = relationship("TripSchedule", back_populates="bus_type")


@event.listens_for(BusType, "before_insert")
@event.listens_for(BusType, "before_update")
def _sync_bus_type_capacity(mapper, connection, target):
    target.capacity = calculate_capacity(target.seats)

# ================================
# Trip Schedules
# ================================
class TripSchedule(Base):
    __tablename__ = "trip_schedules"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), unique=True, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    bus_type_id = Column(String(36), ForeignKey("bus_types.id"), nullable=False)
    from_terminal_id = Column(String(36), ForeignKey("terminals.id"), nullable=False)
    departure_time = Column(Time, nullable=False)
    frequency = Column(String(20), nullable=False, default="daily")  # daily | specific-days
    days = Column(JSON, default=list)  # weekday tokens, e.g. ["mon", "wed"]
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bus_type = relationship("BusType", back_populates="trip_schedules")
    from_terminal = relationship("Terminal")
    stops = relationship("TripStop", back_populates="trip", order_by="TripStop.position", cascade="all, delete-orphan")
    tickets = relationship("Ticket", back_populates="trip")

class TripStop(Base):
    __tablename__ = "trip_stops"

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trip_schedules.id"), nullable=False, index=True)
    terminal_id = Column(String(36), ForeignKey("terminals.id"), nullable=False)
    position = Column(Integer, nullable=False)
    time = Column(Time, nullable=False)
    is_pickup = Column(Boolean, default=True)
    is_dropoff = Column(Boolean, default=True)

    # Relationships
    trip = relationship("TripSchedule", back_populates="stops")
    terminal = relationship("Terminal")

# ================================
# Tickets
# ================================
class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=_new_id)
    ticket_number = Column(String(32), unique=True, nullable=False)
    trip_id = Column(String(36), ForeignKey("trip_schedules.id"), nullable=False, index=True)
    booked_by_id = Column(String(36), ForeignKey("users.id"))
    from_terminal_id = Column(String(36), ForeignKey("terminals.id"))
    to_terminal_id = Column(String(36), ForeignKey("terminals.id"))
    date = Column(Date, nullable=False, index=True)
    booked_seats = Column(JSON, nullable=False, default=list)  # seat ids
    total_price = Column(Numeric(10, 2))
    is_paid = Column(Boolean, default=True)
    is_cancelled = Column(Boolean, default=False, index=True)
    payment_deadline = Column(DateTime)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    trip = relationship("TripSchedule", back_populates="tickets")
    booked_by = relationship("User", back_populates="tickets")


@event.listens_for(Ticket, "before_insert")
def _populate_payment_deadline(mapper, connection, target):
    from src.bookings.deadlines import initial_payment_deadline

    trip = None
    if target.payment_deadline is None and target.is_paid is False:
        trip = target.__dict__.get("trip")
        if trip is None and target.trip_id:
            trip = connection.execute(
                select(TripSchedule.departure_time).where(TripSchedule.id == target.trip_id)
            ).first()
    target.payment_deadline = initial_payment_deadline(
        trip, target.date, target.is_paid, target.payment_deadline, datetime.now()
    )
