"""Seed a demo restaurant group for the host-stand dashboard.

Replays a few hours of service through the real lifecycle so the service
history, audit trail and published estimates are all consistent: two
locations, twelve tables downtown, three finished turns, three parties at
their tables and a short waiting line.

Usage:
    cd backend
    python scripts/seed_demo_data.py
"""

import os
import sys
from datetime import timedelta

# Ensure the backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hostdesk.core.clock import ManualClock, utcnow
from hostdesk.core.config import settings
from hostdesk.db.base import Base
from hostdesk.db.session import SessionLocal, engine, ensure_sqlite_directory
from hostdesk.models import (
    CompleteEvent,
    Location,
    Party,
    RestaurantGroup,
    SeatEvent,
    StatusLogEntry,
    Table,
)
from hostdesk.services.floor_service import FloorService
from hostdesk.services.notifications import RecordingNotificationDispatcher
from hostdesk.services.party_lifecycle import PartyLifecycle

GUESTS = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson"]


def seed():
    """Wipe the database and replay a demo evening."""
    ensure_sqlite_directory(settings.database_url)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        _clear(db)
        _seed_all(db)
        print("Seed data committed successfully.")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()


def _clear(db):
    # Children first; foreign keys are enforced on SQLite
    for model in (CompleteEvent, SeatEvent, StatusLogEntry):
        db.query(model).delete()
    db.query(Party).update({Party.recommended_table_id: None})
    for model in (Party, Table, Location, RestaurantGroup):
        db.query(model).delete()
    db.commit()


def _table_layout(number):
    section = "Bar" if number <= 4 else "Patio" if number <= 8 else "Main"
    capacity = 4 if number % 3 == 0 else 6 if number % 2 == 0 else 2
    return capacity, section


def _seed_all(db):
    clock = ManualClock(utcnow().replace(microsecond=0) - timedelta(hours=5))
    dispatcher = RecordingNotificationDispatcher()
    floor = FloorService(db, clock=clock, dispatcher=dispatcher)
    lifecycle = PartyLifecycle(db, clock=clock, dispatcher=dispatcher)

    group = floor.create_group("Urban Bites Collective")
    downtown = floor.create_location(group.id, "Downtown", address="123 Main St", city="New York")
    floor.create_location(group.id, "Uptown", address="456 Park Ave", city="New York")

    tables = []
    for number in range(1, 13):
        capacity, section = _table_layout(number)
        tables.append(floor.create_table(downtown.id, capacity, label=f"T{number}", section=section))
    print(f"Created {len(tables)} tables at {downtown.name}")

    # Early turns: seat, eat, leave
    for index, minutes in enumerate((55, 70, 40)):
        size = (index % 4) + 2
        party = lifecycle.check_in(downtown.id, size, "host", GUESTS[index], guest_phone=f"555-{1000 + index}")
        clock.advance(minutes=5)
        table = next(t for t in tables if t.capacity >= size)
        lifecycle.seat(party.id, table.id)
        clock.advance(minutes=minutes)
        lifecycle.complete(party.id)
        clock.advance(minutes=5)

    # Parties still at their tables
    for offset, size in enumerate((2, 4, 6)):
        index = 3 + offset
        party = lifecycle.check_in(downtown.id, size, "host", GUESTS[index], guest_phone=f"555-{1000 + index}")
        clock.advance(minutes=3)
        lifecycle.seat(party.id, tables[[2, 3, 1][offset]].id)
        clock.advance(minutes=10)

    # The line
    for offset, (size, source) in enumerate(((2, "kiosk"), (4, "web"), (3, "host"))):
        index = 6 + offset
        lifecycle.check_in(downtown.id, size, source, GUESTS[index], guest_phone=f"555-{1000 + index}")
        clock.advance(minutes=4)

    print(f"Replayed service until {clock.now().isoformat()}; {len(dispatcher.alerts)} guest alerts queued")


if __name__ == "__main__":
    seed()
