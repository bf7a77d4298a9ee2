"""Party, seating and status schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from hostdesk.models.party import EstimateStatus, PartyStatus


class CheckInRequest(BaseModel):
    """Walk-in check-in from the public intake or the host stand."""
    location_id: str
    party_size: int = Field(..., ge=1, le=100)
    source: str = Field("walk_in", min_length=1, max_length=50)
    guest_name: str = Field(..., min_length=1, max_length=200)
    guest_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: PartyStatus
    table_id: Optional[str] = None


class PartySizeUpdate(BaseModel):
    party_size: int = Field(..., ge=1, le=100)


class SeatRequest(BaseModel):
    party_id: str
    table_id: str


class CompleteRequest(BaseModel):
    party_id: str


class StatusLogResponse(BaseModel):
    id: int
    party_id: str
    old_status: Optional[PartyStatus] = None
    new_status: PartyStatus
    timestamp: datetime

    model_config = {"from_attributes": True}


class SeatEventResponse(BaseModel):
    id: str
    party_id: str
    table_id: str
    seat_time: datetime

    model_config = {"from_attributes": True}


class CompleteEventResponse(BaseModel):
    id: str
    party_id: str
    table_id: str
    seat_event_id: str
    complete_time: datetime

    model_config = {"from_attributes": True}


class PartyResponse(BaseModel):
    """Party with its published estimate."""
    id: str
    location_id: str
    guest_name: str
    guest_phone: Optional[str] = None
    notes: Optional[str] = None
    source: str
    party_size: int
    check_in_time: datetime
    status: PartyStatus
    estimated_wait_minutes: Optional[int] = None
    confidence_low: Optional[int] = None
    confidence_high: Optional[int] = None
    estimate_status: Optional[EstimateStatus] = None
    estimate_updated_at: Optional[datetime] = None
    quoted_wait_minutes: Optional[int] = None
    recommended_table_id: Optional[str] = None

    model_config = {"from_attributes": True}


class PartyDetailResponse(PartyResponse):
    seat_events: List[SeatEventResponse] = []
    complete_events: List[CompleteEventResponse] = []
    audit_timeline: List[StatusLogResponse] = []
    actual_wait_minutes: Optional[int] = None
    estimated_vs_actual: Optional[int] = None


class PartyStatusResponse(BaseModel):
    """What a guest polling their place in line sees."""
    party_id: str
    status: PartyStatus
    position: Optional[int] = None
    estimated_wait_minutes: Optional[int] = None
    confidence_low: Optional[int] = None
    confidence_high: Optional[int] = None
    estimate_status: Optional[EstimateStatus] = None
    estimate_updated_at: Optional[datetime] = None
    audit_trail: List[StatusLogResponse] = []

    model_config = {"from_attributes": True}
