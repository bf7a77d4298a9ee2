"""Rolling seat-to-turnover statistics.

``ServiceHistory`` is a projection over seat/complete events: it is rebuilt
from the event log on every recompute and never stored. Averages are keyed by
the size of the party that was seated.
"""

import logging
import statistics
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostdesk.models.party import Party
from hostdesk.models.seating import CompleteEvent, SeatEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceSample:
    """One finished turn: a party of ``party_size`` held a table from seat to complete."""

    party_size: int
    seat_time: datetime
    complete_time: datetime

    @property
    def duration_minutes(self) -> float:
        return (self.complete_time - self.seat_time).total_seconds() / 60


@dataclass(frozen=True)
class ObservedWait:
    """Check-in to seat time of one seated party."""

    seat_time: datetime
    wait_minutes: float


class ServiceHistory:
    """Average service duration per party size over a trailing window."""

    def __init__(
        self,
        samples: Iterable[ServiceSample],
        now: datetime,
        default_minutes: float = 45.0,
        observed_waits: Iterable[ObservedWait] = (),
    ):
        self.now = now
        self.default_minutes = default_minutes
        self._samples: List[ServiceSample] = list(samples)
        self._observed_waits: List[ObservedWait] = list(observed_waits)

    def _window_samples(self, window_days: int) -> List[ServiceSample]:
        cutoff = self.now - timedelta(days=window_days)
        return [s for s in self._samples if s.complete_time >= cutoff]

    def average_duration(self, party_size: int, window_days: int = 7) -> float:
        """Mean minutes a party of ``party_size`` held a table.

        Falls back to ``default_minutes`` when the window has no sample for
        that size. Durations are sorted before averaging so the result does
        not depend on the order the events were loaded in.
        """
        durations = sorted(
            s.duration_minutes for s in self._window_samples(window_days) if s.party_size == party_size
        )
        if not durations:
            return float(self.default_minutes)
        return statistics.mean(durations)

    def longest_observed_wait(self, window_days: int = 7) -> Optional[float]:
        """Longest check-in to seat wait within the window, if any party was seated."""
        cutoff = self.now - timedelta(days=window_days)
        waits = [w.wait_minutes for w in self._observed_waits if w.seat_time >= cutoff]
        return max(waits) if waits else None

    def summary(self, window_days: int = 7) -> Dict[int, Dict[str, float]]:
        """Sample count and mean duration for every party size seen in the window."""
        by_size: Dict[int, List[float]] = {}
        for sample in self._window_samples(window_days):
            by_size.setdefault(sample.party_size, []).append(sample.duration_minutes)
        return {
            size: {"samples": len(durations), "average_minutes": round(statistics.mean(sorted(durations)), 2)}
            for size, durations in sorted(by_size.items())
        }

    @classmethod
    def load(
        cls,
        db: Session,
        location_id: str,
        now: datetime,
        window_days: int = 7,
        default_minutes: float = 45.0,
    ) -> "ServiceHistory":
        """Build the history for one location from its seat and complete events."""
        cutoff = now - timedelta(days=window_days)

        turn_rows = db.execute(
            select(Party.party_size, SeatEvent.seat_time, CompleteEvent.complete_time)
            .select_from(CompleteEvent)
            .join(SeatEvent, CompleteEvent.seat_event_id == SeatEvent.id)
            .join(Party, SeatEvent.party_id == Party.id)
            .where(
                Party.location_id == location_id,
                CompleteEvent.complete_time >= cutoff,
            )
        ).all()
        samples = [
            ServiceSample(party_size=row.party_size, seat_time=row.seat_time, complete_time=row.complete_time)
            for row in turn_rows
        ]

        wait_rows = db.execute(
            select(Party.check_in_time, SeatEvent.seat_time)
            .select_from(SeatEvent)
            .join(Party, SeatEvent.party_id == Party.id)
            .where(
                Party.location_id == location_id,
                SeatEvent.seat_time >= cutoff,
            )
        ).all()
        observed = [
            ObservedWait(
                seat_time=row.seat_time,
                wait_minutes=max(0.0, (row.seat_time - row.check_in_time).total_seconds() / 60),
            )
            for row in wait_rows
        ]

        logger.debug(
            f"Loaded service history for location {location_id}: "
            f"{len(samples)} turns, {len(observed)} seatings since {cutoff.isoformat()}"
        )
        return cls(samples, now=now, default_minutes=default_minutes, observed_waits=observed)
