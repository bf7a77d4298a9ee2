"""Seating scheduler.

A pure function over a snapshot of one location: the waiting queue, the
active tables, which of them are occupied, and the service history. It
decides which waiting party could be seated where right now, and for
everybody else predicts when a table that fits them turns over.

Algorithm (one pass, queue in check-in order, ties by party id):

1. Free tables are the active tables not occupied. A party earlier in the
   queue claims a free table before later parties may consider it.
2. Best fit: the free table with the smallest capacity that seats the party,
   lowest table id on ties. Wait is 0.
3. Otherwise the occupied table that fits and is expected to turn over first
   (seat time + average duration for the seated party's size), lowest table
   id on ties. If no occupied table fits, the location fallback applies.
4. Confidence band is the estimate plus/minus a fixed spread, low side
   floored at 0.

Parties no active table can ever seat get the ``NO_CAPACITY`` sentinel
instead of a number. The scheduler never raises domain errors.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from hostdesk.models.party import EstimateStatus


class DurationHistory(Protocol):
    def average_duration(self, party_size: int, window_days: int = 7) -> float: ...

    def longest_observed_wait(self, window_days: int = 7) -> Optional[float]: ...


@dataclass(frozen=True)
class QueuedParty:
    party_id: str
    party_size: int
    check_in_time: datetime


@dataclass(frozen=True)
class TableSlot:
    table_id: str
    capacity: int


@dataclass(frozen=True)
class SeatedTable:
    """Occupancy as the scheduler needs it: who sits where since when."""

    table_id: str
    party_size: int
    seat_time: datetime


@dataclass(frozen=True)
class SchedulerPolicy:
    confidence_spread_minutes: int = 5
    fallback_padding_minutes: int = 15
    fallback_ceiling_minutes: int = 90
    history_window_days: int = 7


@dataclass(frozen=True)
class ScheduleResult:
    party_id: str
    status: EstimateStatus
    immediately_seatable: Optional[str] = None  # table id
    estimated_wait_minutes: Optional[int] = None
    confidence_low: Optional[int] = None
    confidence_high: Optional[int] = None
    expected_free_at: Optional[datetime] = None
    awaited_table_id: Optional[str] = None

    @property
    def has_estimate(self) -> bool:
        return self.status != EstimateStatus.NO_CAPACITY


def minutes_until(moment: datetime, now: datetime) -> int:
    """Whole minutes from ``now`` until ``moment``, rounded up, never negative."""
    seconds = round((moment - now).total_seconds())
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)


def confidence_band(wait_minutes: int, spread: int) -> tuple:
    return max(0, wait_minutes - spread), wait_minutes + spread


def fallback_wait(history: DurationHistory, policy: SchedulerPolicy) -> int:
    """Location-wide default for parties nothing currently turns over for.

    Longest observed wait plus padding, capped at the ceiling; the ceiling
    alone when nobody has been seated inside the window.
    """
    longest = history.longest_observed_wait(policy.history_window_days)
    if longest is None:
        return policy.fallback_ceiling_minutes
    return min(policy.fallback_ceiling_minutes, math.ceil(longest) + policy.fallback_padding_minutes)


def queue_order(queue: Sequence[QueuedParty]) -> List[QueuedParty]:
    return sorted(queue, key=lambda p: (p.check_in_time, p.party_id))


def schedule(
    queue: Sequence[QueuedParty],
    tables: Sequence[TableSlot],
    occupied: Mapping[str, SeatedTable],
    history: DurationHistory,
    now: datetime,
    policy: Optional[SchedulerPolicy] = None,
) -> Dict[str, ScheduleResult]:
    """Assignment or estimate for every waiting party, keyed by party id.

    ``tables`` are the location's active tables. Occupied tables that are not
    active are ignored: they will not be offered to anyone when they free up.
    """
    policy = policy or SchedulerPolicy()
    spread = policy.confidence_spread_minutes

    max_capacity = max((t.capacity for t in tables), default=0)
    available = sorted(
        (t for t in tables if t.table_id not in occupied),
        key=lambda t: (t.capacity, t.table_id),
    )

    # Expected turnover of every occupied active table, computed once per pass
    turnovers = []
    for table in tables:
        seated = occupied.get(table.table_id)
        if seated is None:
            continue
        average = history.average_duration(seated.party_size, policy.history_window_days)
        expected_free = seated.seat_time + timedelta(minutes=average)
        turnovers.append((expected_free, table.table_id, table.capacity))
    turnovers.sort(key=lambda t: (t[0], t[1]))

    fallback: Optional[int] = None
    results: Dict[str, ScheduleResult] = {}

    for party in queue_order(queue):
        if party.party_size > max_capacity:
            results[party.party_id] = ScheduleResult(party_id=party.party_id, status=EstimateStatus.NO_CAPACITY)
            continue

        best_fit = next((t for t in available if t.capacity >= party.party_size), None)
        if best_fit is not None:
            available.remove(best_fit)
            low, high = confidence_band(0, spread)
            results[party.party_id] = ScheduleResult(
                party_id=party.party_id,
                status=EstimateStatus.SEATABLE,
                immediately_seatable=best_fit.table_id,
                estimated_wait_minutes=0,
                confidence_low=low,
                confidence_high=high,
            )
            continue

        turnover = next((t for t in turnovers if t[2] >= party.party_size), None)
        if turnover is not None:
            expected_free, table_id, _ = turnover
            wait = minutes_until(expected_free, now)
            low, high = confidence_band(wait, spread)
            results[party.party_id] = ScheduleResult(
                party_id=party.party_id,
                status=EstimateStatus.TURNOVER,
                estimated_wait_minutes=wait,
                confidence_low=low,
                confidence_high=high,
                expected_free_at=expected_free,
                awaited_table_id=table_id,
            )
            continue

        if fallback is None:
            fallback = fallback_wait(history, policy)
        low, high = confidence_band(fallback, spread)
        results[party.party_id] = ScheduleResult(
            party_id=party.party_id,
            status=EstimateStatus.FALLBACK,
            estimated_wait_minutes=fallback,
            confidence_low=low,
            confidence_high=high,
        )

    return results
