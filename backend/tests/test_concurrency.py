"""Concurrent seating against a file-backed database."""

import threading
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from hostdesk.core.clock import ManualClock
from hostdesk.core.config import Settings
from hostdesk.core.exceptions import ConflictError
from hostdesk.db.base import Base
from hostdesk.db.session import enable_sqlite_foreign_keys
from hostdesk.models.location import Location, RestaurantGroup
from hostdesk.models.party import Party, PartyStatus
from hostdesk.models.seating import SeatEvent
from hostdesk.models.table import Table
from hostdesk.services.notifications import RecordingNotificationDispatcher
from hostdesk.services.party_lifecycle import PartyLifecycle
from hostdesk.services.table_inventory import TableInventory


@pytest.fixture
def file_sessionmaker(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


def _lifecycle(session, clock):
    return PartyLifecycle(
        session,
        clock=clock,
        settings=Settings(_env_file=None),
        dispatcher=RecordingNotificationDispatcher(),
    )


def _race(file_sessionmaker, clock, attempts):
    """Run ``(party_id, table_id)`` seat attempts in parallel threads."""
    barrier = threading.Barrier(len(attempts))
    outcomes = {}

    def worker(party_id, table_id):
        session = file_sessionmaker()
        try:
            lifecycle = _lifecycle(session, clock)
            barrier.wait()
            try:
                lifecycle.seat(party_id, table_id)
                outcomes[party_id] = "seated"
            except ConflictError:
                outcomes[party_id] = "conflict"
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=attempt) for attempt in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def _setup_location(session, name, table_capacity):
    group = RestaurantGroup(name=f"{name} Group")
    session.add(group)
    session.flush()
    location = Location(group_id=group.id, name=name)
    session.add(location)
    session.flush()
    table = Table(location_id=location.id, capacity=table_capacity, label="T5")
    session.add(table)
    session.commit()
    return location, table


def test_two_parties_racing_for_one_table(file_sessionmaker):
    clock = ManualClock(datetime(2026, 3, 6, 19, 0, 0))
    session = file_sessionmaker()
    location, table = _setup_location(session, "Downtown", 4)
    lifecycle = _lifecycle(session, clock)
    first = lifecycle.check_in(location.id, 4, "host", "First")
    second = lifecycle.check_in(location.id, 3, "host", "Second")
    session.close()

    outcomes = _race(file_sessionmaker, clock, [(first.id, table.id), (second.id, table.id)])

    assert sorted(outcomes.values()) == ["conflict", "seated"]

    check = file_sessionmaker()
    try:
        seat_events = check.query(SeatEvent).filter(SeatEvent.table_id == table.id).all()
        assert len(seat_events) == 1
        winner = seat_events[0].party_id
        assert outcomes[winner] == "seated"
        loser = second.id if winner == first.id else first.id
        assert check.get(Party, winner).status == PartyStatus.SEATED
        assert check.get(Party, loser).status == PartyStatus.WAITING
    finally:
        check.close()


def test_different_locations_do_not_conflict(file_sessionmaker):
    clock = ManualClock(datetime(2026, 3, 6, 19, 0, 0))
    session = file_sessionmaker()
    downtown, downtown_table = _setup_location(session, "Downtown", 4)
    uptown, uptown_table = _setup_location(session, "Uptown", 4)
    lifecycle = _lifecycle(session, clock)
    first = lifecycle.check_in(downtown.id, 4, "host", "First")
    second = lifecycle.check_in(uptown.id, 4, "host", "Second")
    session.close()

    outcomes = _race(
        file_sessionmaker,
        clock,
        [(first.id, downtown_table.id), (second.id, uptown_table.id)],
    )

    assert outcomes == {first.id: "seated", second.id: "seated"}


class TestOpenSeatConstraint:
    """The database rejects a second open seating even when the in-process lock is bypassed."""

    def test_second_open_seat_event_is_rejected(self, db_session, lifecycle, location, four_top):
        party = lifecycle.check_in(location.id, 4, "host", "First")
        lifecycle.seat(party.id, four_top.id)

        other = lifecycle.check_in(location.id, 2, "web", "Second")
        db_session.add(SeatEvent(party_id=other.id, table_id=four_top.id, open_table_id=four_top.id))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_stale_occupancy_read_becomes_conflict(self, db_session, lifecycle, location, four_top, monkeypatch):
        first = lifecycle.check_in(location.id, 4, "host", "First")
        second = lifecycle.check_in(location.id, 3, "web", "Second")
        lifecycle.seat(first.id, four_top.id)

        # Another worker process read the table as free before the first seating committed
        monkeypatch.setattr(TableInventory, "open_seat_event", lambda self, table_id: None)

        with pytest.raises(ConflictError) as exc_info:
            lifecycle.seat(second.id, four_top.id)

        assert exc_info.value.retryable is True
        assert db_session.query(SeatEvent).filter(SeatEvent.table_id == four_top.id).count() == 1
        assert db_session.get(Party, second.id).status == PartyStatus.WAITING

    def test_completion_releases_the_table(self, db_session, lifecycle, location, four_top, clock):
        party = lifecycle.check_in(location.id, 4, "host", "First")
        seat_event = lifecycle.seat(party.id, four_top.id)
        assert seat_event.open_table_id == four_top.id

        clock.advance(minutes=45)
        lifecycle.complete(party.id)

        db_session.refresh(seat_event)
        assert seat_event.open_table_id is None
