"""Party lifecycle: check-in, status transitions, seating and completion.

Every operation here is one unit of work executed while holding the party's
location lock: the status change, its audit entry, any seat/complete event
and the estimate recompute it triggers commit together or not at all.
Notification dispatch happens after the commit, outside the lock.

    waiting  --> notified
    waiting  --> seated      (creates a SeatEvent)
    notified --> seated      (creates a SeatEvent)
    seated   --> completed   (creates a CompleteEvent)
    waiting  --> cancelled | no_show
    notified --> cancelled | no_show
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hostdesk.core.clock import Clock, system_clock
from hostdesk.core.config import Settings, get_settings
from hostdesk.core.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from hostdesk.core.locks import location_locks
from hostdesk.db.session import unit_of_work
from hostdesk.models.location import Location
from hostdesk.models.party import Party, PartyStatus, QUEUED_STATUSES, StatusLogEntry
from hostdesk.models.seating import CompleteEvent, SeatEvent
from hostdesk.services.estimate_engine import EstimateEngine, RecomputeOutcome
from hostdesk.services.notifications import NotificationDispatcher, default_dispatcher, dispatch_all
from hostdesk.services.party_queue import PartyQueue
from hostdesk.services.table_inventory import TableInventory

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[PartyStatus, FrozenSet[PartyStatus]] = {
    PartyStatus.WAITING: frozenset(
        {PartyStatus.NOTIFIED, PartyStatus.SEATED, PartyStatus.CANCELLED, PartyStatus.NO_SHOW}
    ),
    PartyStatus.NOTIFIED: frozenset({PartyStatus.SEATED, PartyStatus.CANCELLED, PartyStatus.NO_SHOW}),
    PartyStatus.SEATED: frozenset({PartyStatus.COMPLETED}),
    PartyStatus.COMPLETED: frozenset(),
    PartyStatus.CANCELLED: frozenset(),
    PartyStatus.NO_SHOW: frozenset(),
}


def can_transition(current: PartyStatus, target: PartyStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def parse_status(value: Union[str, PartyStatus]) -> PartyStatus:
    if isinstance(value, PartyStatus):
        return value
    try:
        return PartyStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in PartyStatus)
        raise ValidationError(f"Unknown status '{value}'. Expected one of: {allowed}")


@dataclass
class TransitionResult:
    party: Party
    seat_event: Optional[SeatEvent] = None
    complete_event: Optional[CompleteEvent] = None
    recompute: Optional[RecomputeOutcome] = None


@dataclass
class CheckInResult:
    party: Party
    created: bool


class PartyLifecycle:
    """State machine and audit trail for walk-in parties."""

    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        settings: Optional[Settings] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.clock = clock
        self.settings = settings or get_settings()
        self.dispatcher = dispatcher or default_dispatcher
        self.queue = PartyQueue(db)
        self.inventory = TableInventory(db)
        self.engine = EstimateEngine(db, clock=clock, settings=self.settings)

    # ===== CHECK-IN =====

    def check_in(
        self,
        location_id: str,
        party_size: int,
        source: str,
        guest_name: str,
        guest_phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Party:
        """Put a walk-in party in line.

        A repeat of the same (location, size, source) within the dedupe window
        of an unterminated party returns that party instead of a new one.
        """
        return self.register_check_in(
            location_id, party_size, source, guest_name, guest_phone=guest_phone, notes=notes
        ).party

    def register_check_in(
        self,
        location_id: str,
        party_size: int,
        source: str,
        guest_name: str,
        guest_phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> CheckInResult:
        """Like ``check_in``, but also reports whether a new party was created."""
        if party_size is None or party_size < 1:
            raise ValidationError("party_size must be at least 1")
        if not guest_name or not guest_name.strip():
            raise ValidationError("guest_name is required")
        if not source or not source.strip():
            raise ValidationError("source is required")

        location = self.db.get(Location, location_id)
        if location is None:
            raise NotFoundError("Location", location_id)
        if not location.is_active:
            raise ValidationError(f"Location '{location_id}' is not accepting check-ins")

        with location_locks.hold(location_id):
            with unit_of_work(self.db):
                now = self.clock.now()
                since = now - timedelta(minutes=self.settings.checkin_dedupe_minutes)
                existing = self.queue.find_recent_duplicate(location_id, party_size, source, since)
                if existing is not None:
                    logger.info(
                        f"Duplicate check-in for location {location_id} (size {party_size}, "
                        f"source {source}); returning party {existing.id}"
                    )
                    return CheckInResult(party=existing, created=False)

                party = Party(
                    location_id=location_id,
                    guest_name=guest_name.strip(),
                    guest_phone=guest_phone,
                    notes=notes,
                    source=source,
                    party_size=party_size,
                    check_in_time=now,
                    status=PartyStatus.WAITING,
                )
                self.db.add(party)
                self.db.flush()
                self._append_log(party, None, PartyStatus.WAITING, now)
                outcome = self.engine.recompute(location_id)

        logger.info(f"Checked in party {party.id} (size {party_size}) at location {location_id}")
        dispatch_all(self.dispatcher, outcome.alerts)
        return CheckInResult(party=party, created=True)

    # ===== TRANSITIONS =====

    def transition(
        self,
        party_id: str,
        target_status: Union[str, PartyStatus],
        table_id: Optional[str] = None,
    ) -> Party:
        """Move a party along the state machine. ``table_id`` is required for ``seated``."""
        return self.apply(party_id, target_status, table_id=table_id).party

    def notify(self, party_id: str) -> Party:
        """Staff told the guest their table is ready."""
        return self.transition(party_id, PartyStatus.NOTIFIED)

    def seat(self, party_id: str, table_id: str) -> SeatEvent:
        return self.apply(party_id, PartyStatus.SEATED, table_id=table_id).seat_event

    def complete(self, party_id: str) -> CompleteEvent:
        """Close the party's open seat event; the table turns over."""
        return self.apply(party_id, PartyStatus.COMPLETED).complete_event

    def apply(
        self,
        party_id: str,
        target_status: Union[str, PartyStatus],
        table_id: Optional[str] = None,
    ) -> TransitionResult:
        target = parse_status(target_status)
        if target == PartyStatus.SEATED and not table_id:
            raise ValidationError("table_id is required to seat a party")

        location_id = self._get_party(party_id).location_id

        with location_locks.hold(location_id):
            with unit_of_work(self.db):
                # Re-read under the lock: another request may have moved the party
                party = self._get_party(party_id, refresh=True)
                current = party.status
                if not can_transition(current, target):
                    raise InvalidTransitionError(party_id, current.value, target.value)

                now = self.clock.now()
                result = TransitionResult(party=party)
                if target == PartyStatus.SEATED:
                    result.seat_event = self._create_seat_event(party, table_id, now)
                elif target == PartyStatus.COMPLETED:
                    result.complete_event = self._create_complete_event(party, now)

                party.status = target
                self._append_log(party, current, target, now)
                self.db.flush()
                result.recompute = self.engine.recompute(location_id)

        logger.info(f"Party {party_id}: {current.value} -> {target.value}")
        dispatch_all(self.dispatcher, result.recompute.alerts)
        return result

    def update_party_size(self, party_id: str, party_size: int) -> Party:
        """Explicit size edit, allowed while the party is still in line."""
        if party_size is None or party_size < 1:
            raise ValidationError("party_size must be at least 1")

        location_id = self._get_party(party_id).location_id
        with location_locks.hold(location_id):
            with unit_of_work(self.db):
                party = self._get_party(party_id, refresh=True)
                if party.status not in QUEUED_STATUSES:
                    raise InvalidStateError(
                        f"Party '{party_id}' is {party.status.value}; size can only change while in line",
                        party_id=party_id,
                    )
                old_size = party.party_size
                party.party_size = party_size
                self.db.flush()
                outcome = self.engine.recompute(location_id)

        logger.info(f"Party {party_id} size changed {old_size} -> {party_size}")
        dispatch_all(self.dispatcher, outcome.alerts)
        return party

    # ===== INTERNALS =====

    def _get_party(self, party_id: str, refresh: bool = False) -> Party:
        if refresh:
            party = self.db.scalars(
                select(Party).where(Party.id == party_id).execution_options(populate_existing=True)
            ).first()
        else:
            party = self.db.get(Party, party_id)
        if party is None:
            raise NotFoundError("Party", party_id)
        return party

    def _create_seat_event(self, party: Party, table_id: str, now: datetime) -> SeatEvent:
        table = self.inventory.lock_table(table_id)
        if table is None:
            raise NotFoundError("Table", table_id)
        if table.location_id != party.location_id:
            raise ValidationError(f"Table '{table_id}' belongs to another location")
        if not table.is_active:
            raise ValidationError(f"Table '{table_id}' is not active")
        if table.capacity < party.party_size:
            raise ValidationError(
                f"Table '{table_id}' seats {table.capacity}; party has {party.party_size}"
            )

        holder = self.inventory.open_seat_event(table_id)
        if holder is not None:
            logger.warning(
                f"Seat conflict: table {table_id} already holds party {holder.party_id}; "
                f"rejected party {party.id}"
            )
            raise ConflictError(
                f"Table '{table_id}' is already occupied",
                table_id=table_id,
                party_id=party.id,
            )

        seat_event = SeatEvent(party_id=party.id, table_id=table_id, seat_time=now, open_table_id=table_id)
        self.db.add(seat_event)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Another process seated the table between our check and insert
            logger.warning(f"Seat conflict on insert: table {table_id}; rejected party {party.id}")
            raise ConflictError(
                f"Table '{table_id}' is already occupied",
                table_id=table_id,
                party_id=party.id,
            ) from e
        return seat_event

    def _create_complete_event(self, party: Party, now: datetime) -> CompleteEvent:
        seat_event = self.inventory.open_seat_event_for_party(party.id)
        if seat_event is None:
            raise InvalidStateError(f"Party '{party.id}' has no open seat event", party_id=party.id)
        if now <= seat_event.seat_time:
            raise ValidationError("Completion time must be after the seat time")

        seat_event.open_table_id = None
        complete_event = CompleteEvent(
            party_id=party.id,
            table_id=seat_event.table_id,
            seat_event_id=seat_event.id,
            complete_time=now,
        )
        self.db.add(complete_event)
        return complete_event

    def _append_log(
        self,
        party: Party,
        old_status: Optional[PartyStatus],
        new_status: PartyStatus,
        now: datetime,
    ) -> StatusLogEntry:
        last = self.db.scalar(
            select(StatusLogEntry.timestamp)
            .where(StatusLogEntry.party_id == party.id)
            .order_by(StatusLogEntry.timestamp.desc(), StatusLogEntry.id.desc())
            .limit(1)
        )
        # Audit timestamps never go backwards, even if the clock does
        timestamp = max(now, last) if last is not None else now
        entry = StatusLogEntry(party_id=party.id, old_status=old_status, new_status=new_status, timestamp=timestamp)
        self.db.add(entry)
        return entry


def transition_pairs() -> Tuple[Tuple[PartyStatus, PartyStatus], ...]:
    """Every allowed (from, to) edge, for validation of audit trails."""
    return tuple(
        (source, target) for source, targets in ALLOWED_TRANSITIONS.items() for target in sorted(targets)
    )
