"""SQLAlchemy models."""

from hostdesk.models.location import Location, RestaurantGroup
from hostdesk.models.table import Table
from hostdesk.models.party import (
    EstimateStatus,
    Party,
    PartyStatus,
    StatusLogEntry,
    QUEUED_STATUSES,
    TERMINAL_STATUSES,
)
from hostdesk.models.seating import CompleteEvent, SeatEvent

__all__ = [
    "RestaurantGroup",
    "Location",
    "Table",
    "Party",
    "PartyStatus",
    "EstimateStatus",
    "StatusLogEntry",
    "QUEUED_STATUSES",
    "TERMINAL_STATUSES",
    "SeatEvent",
    "CompleteEvent",
]
