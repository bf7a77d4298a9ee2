"""Pytest configuration and fixtures."""

import os

# Must be set before hostdesk.core.config is imported anywhere
os.environ.setdefault("HOSTDESK_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("HOSTDESK_RATE_LIMIT_ENABLED", "false")

from datetime import datetime
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hostdesk.api.deps import get_clock, get_dispatcher
from hostdesk.core.clock import ManualClock
from hostdesk.core.config import Settings
from hostdesk.db.base import Base
from hostdesk.db.session import enable_sqlite_foreign_keys, get_db
from hostdesk.main import app
# Import all models to ensure they're registered with Base.metadata
from hostdesk.models import *  # noqa: F401,F403
from hostdesk.models.location import Location, RestaurantGroup
from hostdesk.models.table import Table
from hostdesk.services.floor_service import FloorService
from hostdesk.services.notifications import RecordingNotificationDispatcher
from hostdesk.services.party_lifecycle import PartyLifecycle

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

START = datetime(2026, 3, 6, 18, 0, 0)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def dispatcher() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def lifecycle(db_session, clock, settings, dispatcher) -> PartyLifecycle:
    return PartyLifecycle(db_session, clock=clock, settings=settings, dispatcher=dispatcher)


@pytest.fixture
def floor(db_session, clock, settings, dispatcher) -> FloorService:
    return FloorService(db_session, clock=clock, settings=settings, dispatcher=dispatcher)


@pytest.fixture
def location(db_session: Session) -> Location:
    """A location with no tables."""
    group = RestaurantGroup(name="Test Group")
    db_session.add(group)
    db_session.flush()
    location = Location(group_id=group.id, name="Downtown", city="Sofia")
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture
def make_table(db_session: Session):
    """Factory for tables committed straight to the database."""
    def _make(location: Location, capacity: int, label: str = None, is_active: bool = True) -> Table:
        table = Table(location_id=location.id, capacity=capacity, label=label, is_active=is_active)
        db_session.add(table)
        db_session.commit()
        return table
    return _make


@pytest.fixture
def two_top(make_table, location) -> Table:
    return make_table(location, 2, "T2")


@pytest.fixture
def four_top(make_table, location) -> Table:
    return make_table(location, 4, "T4")


@pytest.fixture(scope="function")
def client(db_session: Session, clock, dispatcher) -> Generator[TestClient, None, None]:
    """Create a test client with database, clock and dispatcher overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
