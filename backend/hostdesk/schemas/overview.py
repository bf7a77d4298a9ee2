"""Dashboard schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel

from hostdesk.schemas.floor import LocationResponse, TableResponse
from hostdesk.schemas.parties import CompleteEventResponse, PartyResponse, SeatEventResponse


class OverviewResponse(BaseModel):
    locations: List[LocationResponse]
    tables: List[TableResponse]
    parties: List[PartyResponse]
    seat_events: List[SeatEventResponse]
    complete_events: List[CompleteEventResponse]

    model_config = {"from_attributes": True}


class ServiceDurationStats(BaseModel):
    samples: int
    average_minutes: float


class KpiResponse(BaseModel):
    location_id: str
    time_window: str
    parties_checked_in: int
    avg_quoted_wait_minutes: float
    avg_actual_wait_minutes: float
    delta_minutes: float
    no_show_rate: float
    cancellation_rate: float
    service_duration_by_size: Dict[int, ServiceDurationStats]
    active_waitlist: List[PartyResponse]


class RecomputeResponse(BaseModel):
    location_id: str
    computed_at: datetime
    waiting_parties: int
    seatable_now: Dict[str, str]
    failed: bool
