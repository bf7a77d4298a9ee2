"""Estimate engine: the single entry point that re-derives wait estimates.

Every state-changing operation of a location ends by calling
``EstimateEngine.recompute`` inside its own unit of work and while holding the
location lock. The engine takes a snapshot of the queue, the tables, their
occupancy and the service history, runs the scheduler, and writes the
estimate fields onto every waiting party. It never seats anybody: the
scheduler's table recommendation is advisory.

Storage errors during a recompute are contained in a SAVEPOINT, so the
location keeps its previous estimates and the caller's transition still
commits.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostdesk.core.clock import Clock, system_clock
from hostdesk.core.config import Settings, get_settings
from hostdesk.core.exceptions import NotFoundError
from hostdesk.core.locks import location_locks
from hostdesk.db.session import unit_of_work
from hostdesk.models.location import Location
from hostdesk.models.party import EstimateStatus, Party
from hostdesk.services.notifications import NotificationDispatcher, ProximityAlert, dispatch_all
from hostdesk.services.party_queue import PartyQueue
from hostdesk.services.seating_scheduler import (
    QueuedParty,
    ScheduleResult,
    SchedulerPolicy,
    SeatedTable,
    TableSlot,
    confidence_band,
    schedule,
)
from hostdesk.services.service_history import ServiceHistory
from hostdesk.services.table_inventory import TableInventory

logger = logging.getLogger(__name__)


@dataclass
class RecomputeOutcome:
    location_id: str
    computed_at: datetime
    results: Dict[str, ScheduleResult] = field(default_factory=dict)
    alerts: List[ProximityAlert] = field(default_factory=list)
    failed: bool = False

    @property
    def seatable(self) -> Dict[str, str]:
        """Advisory party id -> table id recommendations."""
        return {
            party_id: result.immediately_seatable
            for party_id, result in self.results.items()
            if result.immediately_seatable
        }


def damp_estimate(
    raw: int,
    previous: Optional[int],
    previous_raw: Optional[int],
    fraction: Optional[float],
    elapsed_minutes: int = 0,
) -> int:
    """Published estimate for a party given its new raw estimate.

    A recompute may lower the previous published value by ``fraction`` of it,
    or by the minutes elapsed since it was published when that is more, and
    never below ``raw``. Repeating a recompute at the same instant with an
    unchanged raw estimate keeps the published value, so recomputes are
    idempotent while a stalled estimate still counts down with the clock.
    """
    if previous is None or fraction is None or raw >= previous:
        return raw
    if raw == previous_raw and elapsed_minutes <= 0:
        return previous
    step = max(int(previous * fraction), elapsed_minutes, 1)
    return max(raw, previous - step)


def elapsed_since(published_at: Optional[datetime], now: datetime) -> int:
    """Whole minutes since an estimate was published, 0 if never or in the future."""
    if published_at is None or now <= published_at:
        return 0
    return int((now - published_at).total_seconds() // 60)


class EstimateEngine:
    """Recomputes and publishes the wait estimates of one location at a time."""

    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.clock = clock
        self.settings = settings or get_settings()
        self.inventory = TableInventory(db)
        self.queue = PartyQueue(db)

    @property
    def policy(self) -> SchedulerPolicy:
        return SchedulerPolicy(
            confidence_spread_minutes=self.settings.confidence_spread_minutes,
            fallback_padding_minutes=self.settings.fallback_padding_minutes,
            fallback_ceiling_minutes=self.settings.fallback_ceiling_minutes,
            history_window_days=self.settings.history_window_days,
        )

    def recompute(self, location_id: str) -> RecomputeOutcome:
        """Re-derive estimates for every waiting party of ``location_id``.

        Must run inside the caller's unit of work while the location lock is
        held. Commits nothing itself.
        """
        now = self.clock.now()
        try:
            with self.db.begin_nested():
                outcome = self._recompute(location_id, now)
        except SQLAlchemyError as e:
            logger.error(
                f"Estimate recompute failed for location {location_id}; keeping previous estimates: {e}",
                exc_info=True,
            )
            return RecomputeOutcome(location_id=location_id, computed_at=now, failed=True)

        logger.info(
            f"Recomputed estimates for location {location_id}: {len(outcome.results)} waiting, "
            f"{len(outcome.seatable)} seatable now"
        )
        return outcome

    def recompute_location(
        self,
        location_id: str,
        dispatcher: Optional[NotificationDispatcher] = None,
    ) -> RecomputeOutcome:
        """Standalone recompute: takes the lock, commits, then dispatches alerts."""
        if self.db.get(Location, location_id) is None:
            raise NotFoundError("Location", location_id)

        with location_locks.hold(location_id):
            with unit_of_work(self.db):
                outcome = self.recompute(location_id)

        if dispatcher is not None:
            dispatch_all(dispatcher, outcome.alerts)
        return outcome

    def _recompute(self, location_id: str, now: datetime) -> RecomputeOutcome:
        waiting = self.queue.waiting(location_id)
        tables = self.inventory.active_tables(location_id)
        occupied = self.inventory.occupied(location_id)
        history = ServiceHistory.load(
            self.db,
            location_id,
            now=now,
            window_days=self.settings.history_window_days,
            default_minutes=self.settings.default_service_minutes,
        )

        results = schedule(
            queue=[QueuedParty(p.id, p.party_size, p.check_in_time) for p in waiting],
            tables=[TableSlot(t.id, t.capacity) for t in tables],
            occupied={
                table_id: SeatedTable(table_id, o.party_size, o.seat_time)
                for table_id, o in occupied.items()
            },
            history=history,
            now=now,
            policy=self.policy,
        )

        outcome = RecomputeOutcome(location_id=location_id, computed_at=now, results=results)
        threshold = self.settings.notify_position_threshold
        ahead = 0
        for index, party in enumerate(waiting):
            # Parties sharing a check-in time share a position
            if index > 0 and waiting[index - 1].check_in_time < party.check_in_time:
                ahead = index
            position = ahead + 1

            self._publish(party, results[party.id], now)

            if position <= threshold and party.proximity_notified_at is None:
                party.proximity_notified_at = now
                outcome.alerts.append(
                    ProximityAlert(
                        party_id=party.id,
                        location_id=location_id,
                        guest_name=party.guest_name,
                        guest_phone=party.guest_phone,
                        position=position,
                        estimated_wait_minutes=party.estimated_wait_minutes,
                    )
                )

        self.db.flush()
        return outcome

    def _publish(self, party: Party, result: ScheduleResult, now: datetime) -> None:
        """Write one party's estimate fields, applying the damping policy."""
        raw = result.estimated_wait_minutes

        if raw is None:
            published = low = high = None
        else:
            if result.status == EstimateStatus.SEATABLE:
                published = raw
            else:
                published = damp_estimate(
                    raw,
                    previous=party.estimated_wait_minutes,
                    previous_raw=party.raw_estimate_minutes,
                    fraction=self.settings.damping_fraction,
                    elapsed_minutes=elapsed_since(party.estimate_updated_at, now),
                )
            low, high = confidence_band(published, self.settings.confidence_spread_minutes)

        party.estimated_wait_minutes = published
        party.confidence_low = low
        party.confidence_high = high
        party.raw_estimate_minutes = raw
        party.estimate_status = result.status
        party.recommended_table_id = result.immediately_seatable
        party.estimate_updated_at = now
        if party.quoted_wait_minutes is None and published is not None:
            party.quoted_wait_minutes = published
