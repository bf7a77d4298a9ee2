"""Seat and complete events."""

from fastapi import APIRouter, status

from hostdesk.api.deps import Lifecycle
from hostdesk.schemas.parties import (
    CompleteEventResponse,
    CompleteRequest,
    SeatEventResponse,
    SeatRequest,
)

router = APIRouter()


@router.post("/seat-events", response_model=SeatEventResponse, status_code=status.HTTP_201_CREATED)
def seat_party(body: SeatRequest, lifecycle: Lifecycle):
    """Seat a waiting or notified party at a free table.

    Returns 409 with ``retryable`` when another request took the table first.
    """
    return lifecycle.seat(body.party_id, body.table_id)


@router.post("/complete-events", response_model=CompleteEventResponse, status_code=status.HTTP_201_CREATED)
def complete_party(body: CompleteRequest, lifecycle: Lifecycle):
    """Turn the party's table over."""
    return lifecycle.complete(body.party_id)
