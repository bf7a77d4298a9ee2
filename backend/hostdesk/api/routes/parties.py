"""Walk-in parties: check-in, status polling, transitions and size edits."""

from fastapi import APIRouter, Request, Response, status

from hostdesk.api.deps import Lifecycle, Reporting
from hostdesk.core.config import settings
from hostdesk.core.rate_limit import limiter
from hostdesk.schemas.parties import (
    CheckInRequest,
    CompleteEventResponse,
    PartyDetailResponse,
    PartyResponse,
    PartySizeUpdate,
    PartyStatusResponse,
    SeatEventResponse,
    StatusLogResponse,
    StatusUpdateRequest,
)

router = APIRouter()


@router.post("/check-in", response_model=PartyResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.checkin_rate_limit)
def check_in(request: Request, response: Response, body: CheckInRequest, lifecycle: Lifecycle):
    """Put a walk-in party in line.

    A repeat submission within the dedupe window returns the party that is
    already waiting, with 200 instead of 201.
    """
    result = lifecycle.register_check_in(
        location_id=body.location_id,
        party_size=body.party_size,
        source=body.source,
        guest_name=body.guest_name,
        guest_phone=body.guest_phone,
        notes=body.notes,
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result.party


@router.get("/{party_id}", response_model=PartyDetailResponse)
def get_party(party_id: str, reporting: Reporting):
    detail = reporting.party_detail(party_id)
    party = detail.party
    return PartyDetailResponse(
        **PartyResponse.model_validate(party).model_dump(),
        seat_events=[SeatEventResponse.model_validate(e) for e in party.seat_events],
        complete_events=[CompleteEventResponse.model_validate(e) for e in party.complete_events],
        audit_timeline=[StatusLogResponse.model_validate(e) for e in party.status_log],
        actual_wait_minutes=detail.actual_wait_minutes,
        estimated_vs_actual=detail.estimated_vs_actual,
    )


@router.get("/{party_id}/status", response_model=PartyStatusResponse)
def get_party_status(party_id: str, reporting: Reporting):
    return PartyStatusResponse.model_validate(reporting.get_status(party_id))


@router.put("/{party_id}/status", response_model=PartyResponse)
def update_party_status(party_id: str, body: StatusUpdateRequest, lifecycle: Lifecycle):
    """Move the party along its lifecycle. ``table_id`` is required for ``seated``."""
    return lifecycle.transition(party_id, body.status, table_id=body.table_id)


@router.patch("/{party_id}/size", response_model=PartyResponse)
def update_party_size(party_id: str, body: PartySizeUpdate, lifecycle: Lifecycle):
    return lifecycle.update_party_size(party_id, body.party_size)
