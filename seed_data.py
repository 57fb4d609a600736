#!/usr/bin/env python3

import logging
from datetime import time
from decimal import Decimal

from src.auth.roles import ROLE_HIERARCHY
from src.auth.utils import get_password_hash
from src.database import Base, SessionLocal, engine
from src.logging_config import setup_json_logging
from src.models import (
    BusType, Role, Terminal, Ticket, TripSchedule, TripStop, User, UserHasRole
)

logger = logging.getLogger("seed_data")


def _vip_layout():
    """2+1 layout: driver and door up front, nine rows of three seats, WC at the back"""
    seats = [
        {"id": "driver", "type": "driver", "position": {"row": 1, "col": 1}},
        {"id": "door", "type": "door", "position": {"row": 1, "col": 4}},
    ]
    number = 1
    for row in range(2, 11):
        for col in (1, 3, 4):
            seats.append({
                "id": f"S{number}",
                "type": "seat",
                "seatNumber": str(number),
                "position": {"row": row, "col": col},
            })
            number += 1
    seats.append({"id": "wc", "type": "wc", "position": {"row": 11, "col": 4}})
    return seats


def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        logger.info("Creating seed data for Hesarak Bus Booking System")

        # Clear existing data (in reverse dependency order)
        db.query(Ticket).delete()
        db.query(TripStop).delete()
        db.query(TripSchedule).delete()
        db.query(BusType).delete()
        db.query(Terminal).delete()
        db.query(UserHasRole).delete()
        db.query(User).delete()
        db.query(Role).delete()

        # 1. Roles
        roles = {name: Role(name=name) for name in ROLE_HIERARCHY}
        db.add_all(roles.values())
        db.flush()

        # 2. Users
        users = [
            ("Admin", "admin@hesarak.af", "admin"),
            ("Kabul Agent", "agent@hesarak.af", "agent"),
            ("Customer", "customer@hesarak.af", "customer"),
        ]
        for name, email, role_name in users:
            user = User(name=name, email=email, password=get_password_hash("changeme123"))
            db.add(user)
            db.flush()
            db.add(UserHasRole(user_id=user.id, role_id=roles[role_name].id))

        # 3. Terminals
        kabul = Terminal(name="Kabul Central Terminal", province="Kabul")
        parwan = Terminal(name="Charikar Terminal", province="Parwan")
        balkh = Terminal(name="Mazar-i-Sharif Terminal", province="Balkh")
        herat = Terminal(name="Herat Terminal", province="Herat")
        db.add_all([kabul, parwan, balkh, herat])
        db.flush()

        # 4. Bus types
        vip = BusType(name="VIP 2+1", amenities=["AC", "WiFi", "Phone Charger"], seats=_vip_layout())
        db.add(vip)
        db.flush()

        # 5. Trip schedules
        northern = TripSchedule(
            name="VIP | Kabul - Parwan - Mazar | 08:00 | Daily",
            price=Decimal("1500"),
            bus_type_id=vip.id,
            from_terminal_id=kabul.id,
            departure_time=time(8, 0),
            frequency="daily",
        )
        northern.stops = [
            TripStop(terminal_id=kabul.id, position=0, time=time(8, 0), is_pickup=True, is_dropoff=False),
            TripStop(terminal_id=parwan.id, position=1, time=time(9, 30), is_pickup=True, is_dropoff=True),
            TripStop(terminal_id=balkh.id, position=2, time=time(17, 0), is_pickup=False, is_dropoff=True),
        ]
        western = TripSchedule(
            name="VIP | Kabul - Herat | 10:00 | Mon Wed Fri",
            price=Decimal("2500"),
            bus_type_id=vip.id,
            from_terminal_id=kabul.id,
            departure_time=time(10, 0),
            frequency="specific-days",
            days=["mon", "wed", "fri"],
        )
        western.stops = [
            TripStop(terminal_id=kabul.id, position=0, time=time(10, 0), is_pickup=True, is_dropoff=False),
            TripStop(terminal_id=herat.id, position=1, time=time(23, 30), is_pickup=False, is_dropoff=True),
        ]
        db.add_all([northern, western])

        db.commit()
        logger.info(
            "Seeded %d roles, %d users, 4 terminals, 1 bus type (%d seats), 2 trip schedules",
            len(roles), len(users), vip.capacity
        )

    except Exception:
        logger.exception("Error creating seed data")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    setup_json_logging()
    create_seed_data()
