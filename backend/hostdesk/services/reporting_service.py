"""Read-side projections: party status, party detail, overview and KPIs.

Nothing here takes a location lock or writes; readers see the last committed
state of every location.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hostdesk.core.clock import Clock, system_clock
from hostdesk.core.config import Settings, get_settings
from hostdesk.core.exceptions import NotFoundError, ValidationError
from hostdesk.models.location import Location
from hostdesk.models.party import Party, PartyStatus, QUEUED_STATUSES, StatusLogEntry
from hostdesk.models.seating import CompleteEvent, SeatEvent
from hostdesk.models.table import Table
from hostdesk.services.party_queue import PartyQueue
from hostdesk.services.service_history import ServiceHistory

KPI_WINDOWS = {"24h": timedelta(days=1), "7d": timedelta(days=7)}


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


@dataclass
class PartyStatusView:
    party_id: str
    status: PartyStatus
    position: Optional[int]
    estimated_wait_minutes: Optional[int]
    confidence_low: Optional[int]
    confidence_high: Optional[int]
    estimate_status: Optional[str]
    estimate_updated_at: Optional[datetime]
    audit_trail: List[StatusLogEntry] = field(default_factory=list)


@dataclass
class PartyDetail:
    party: Party
    actual_wait_minutes: Optional[int]
    estimated_vs_actual: Optional[int]


@dataclass
class Overview:
    locations: List[Location]
    tables: List[Table]
    parties: List[Party]
    seat_events: List[SeatEvent]
    complete_events: List[CompleteEvent]


class ReportingService:
    """Dashboards and guest status polling."""

    def __init__(self, db: Session, clock: Clock = system_clock, settings: Optional[Settings] = None):
        self.db = db
        self.clock = clock
        self.settings = settings or get_settings()
        self.queue = PartyQueue(db)

    def _get_party(self, party_id: str) -> Party:
        party = self.db.scalars(
            select(Party)
            .where(Party.id == party_id)
            .options(
                selectinload(Party.status_log),
                selectinload(Party.seat_events),
                selectinload(Party.complete_events),
            )
            .execution_options(populate_existing=True)
        ).first()
        if party is None:
            raise NotFoundError("Party", party_id)
        return party

    def get_status(self, party_id: str) -> PartyStatusView:
        """What a guest polling their place in line sees."""
        party = self._get_party(party_id)
        position = self.queue.position(party) if party.status in QUEUED_STATUSES else None
        return PartyStatusView(
            party_id=party.id,
            status=party.status,
            position=position,
            estimated_wait_minutes=party.estimated_wait_minutes,
            confidence_low=party.confidence_low,
            confidence_high=party.confidence_high,
            estimate_status=party.estimate_status.value if party.estimate_status else None,
            estimate_updated_at=party.estimate_updated_at,
            audit_trail=list(party.status_log),
        )

    def party_detail(self, party_id: str) -> PartyDetail:
        """Party with its events, and how the quoted wait compared to reality."""
        party = self._get_party(party_id)
        actual = None
        delta = None
        if party.seat_events:
            actual = minutes_between(party.check_in_time, party.seat_events[0].seat_time)
            quoted = party.quoted_wait_minutes
            if quoted is None:
                quoted = party.estimated_wait_minutes or 0
            delta = actual - quoted
        return PartyDetail(party=party, actual_wait_minutes=actual, estimated_vs_actual=delta)

    def overview(self, location_id: Optional[str] = None) -> Overview:
        """Everything a dashboard needs, optionally narrowed to one location."""
        location_query = select(Location).order_by(Location.name, Location.id)
        table_query = select(Table).order_by(Table.location_id, Table.capacity, Table.id)
        party_query = select(Party).order_by(Party.check_in_time, Party.id)
        seat_query = select(SeatEvent).join(Party, SeatEvent.party_id == Party.id).order_by(SeatEvent.seat_time)
        complete_query = (
            select(CompleteEvent)
            .join(Party, CompleteEvent.party_id == Party.id)
            .order_by(CompleteEvent.complete_time)
        )

        if location_id:
            if self.db.get(Location, location_id) is None:
                raise NotFoundError("Location", location_id)
            location_query = location_query.where(Location.id == location_id)
            table_query = table_query.where(Table.location_id == location_id)
            party_query = party_query.where(Party.location_id == location_id)
            seat_query = seat_query.where(Party.location_id == location_id)
            complete_query = complete_query.where(Party.location_id == location_id)

        return Overview(
            locations=list(self.db.scalars(location_query).all()),
            tables=list(self.db.scalars(table_query).all()),
            parties=list(self.db.scalars(party_query).all()),
            seat_events=list(self.db.scalars(seat_query).all()),
            complete_events=list(self.db.scalars(complete_query).all()),
        )

    def kpis(self, location_id: str, time_window: str = "24h") -> Dict[str, Any]:
        """Quoted vs actual wait, no-show and cancellation rates, live waitlist."""
        if time_window not in KPI_WINDOWS:
            raise ValidationError(f"time_window must be one of: {', '.join(KPI_WINDOWS)}")
        if self.db.get(Location, location_id) is None:
            raise NotFoundError("Location", location_id)

        now = self.clock.now()
        start = now - KPI_WINDOWS[time_window]

        parties = list(
            self.db.scalars(
                select(Party)
                .where(Party.location_id == location_id, Party.check_in_time >= start)
                .options(selectinload(Party.seat_events))
                .execution_options(populate_existing=True)
                .order_by(Party.check_in_time, Party.id)
            ).all()
        )

        quoted = [p.quoted_wait_minutes for p in parties if p.quoted_wait_minutes is not None]
        actual = [
            minutes_between(p.check_in_time, p.seat_events[0].seat_time) for p in parties if p.seat_events
        ]
        avg_quoted = sum(quoted) / len(quoted) if quoted else 0.0
        avg_actual = sum(actual) / len(actual) if actual else 0.0

        total = len(parties)
        no_shows = sum(1 for p in parties if p.status == PartyStatus.NO_SHOW)
        cancellations = sum(1 for p in parties if p.status == PartyStatus.CANCELLED)

        history = ServiceHistory.load(
            self.db,
            location_id,
            now=now,
            window_days=self.settings.history_window_days,
            default_minutes=self.settings.default_service_minutes,
        )

        return {
            "location_id": location_id,
            "time_window": time_window,
            "parties_checked_in": total,
            "avg_quoted_wait_minutes": round(avg_quoted, 2),
            "avg_actual_wait_minutes": round(avg_actual, 2),
            "delta_minutes": round(avg_actual - avg_quoted, 2),
            "no_show_rate": round(no_shows / total, 4) if total else 0.0,
            "cancellation_rate": round(cancellations / total, 4) if total else 0.0,
            "service_duration_by_size": history.summary(self.settings.history_window_days),
            "active_waitlist": self.queue.waiting(location_id),
        }
