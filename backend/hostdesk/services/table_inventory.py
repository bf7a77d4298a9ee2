"""Table inventory: active tables and occupancy derived from seat events."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostdesk.models.party import Party
from hostdesk.models.seating import CompleteEvent, SeatEvent
from hostdesk.models.table import Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccupiedTable:
    """An open seat event, flattened for the scheduler."""

    table_id: str
    seat_event_id: str
    party_id: str
    party_size: int
    seat_time: datetime


class TableInventory:
    """Read projection over tables and seat/complete events. Never writes."""

    def __init__(self, db: Session):
        self.db = db

    def _open_seat_events(self):
        return (
            select(SeatEvent)
            .outerjoin(CompleteEvent, CompleteEvent.seat_event_id == SeatEvent.id)
            .where(CompleteEvent.id.is_(None))
        )

    def active_tables(self, location_id: str) -> List[Table]:
        """Active tables of a location, smallest first."""
        return list(
            self.db.scalars(
                select(Table)
                .where(Table.location_id == location_id, Table.is_active.is_(True))
                .order_by(Table.capacity, Table.id)
            ).all()
        )

    def open_seat_event(self, table_id: str) -> Optional[SeatEvent]:
        """The seat event currently holding ``table_id``, if any."""
        return self.db.scalars(
            self._open_seat_events().where(SeatEvent.table_id == table_id).limit(1)
        ).first()

    def open_seat_event_for_party(self, party_id: str) -> Optional[SeatEvent]:
        return self.db.scalars(
            self._open_seat_events().where(SeatEvent.party_id == party_id).limit(1)
        ).first()

    def is_occupied(self, table_id: str) -> bool:
        return self.open_seat_event(table_id) is not None

    def occupied(self, location_id: str) -> Dict[str, OccupiedTable]:
        """Occupied tables of a location keyed by table id."""
        rows = self.db.execute(
            select(SeatEvent.id, SeatEvent.table_id, SeatEvent.party_id, SeatEvent.seat_time, Party.party_size)
            .select_from(SeatEvent)
            .join(Table, SeatEvent.table_id == Table.id)
            .join(Party, SeatEvent.party_id == Party.id)
            .outerjoin(CompleteEvent, CompleteEvent.seat_event_id == SeatEvent.id)
            .where(Table.location_id == location_id, CompleteEvent.id.is_(None))
            .order_by(SeatEvent.seat_time, SeatEvent.id)
        ).all()

        occupied: Dict[str, OccupiedTable] = {}
        for row in rows:
            if row.table_id in occupied:
                # Only reachable if the seating guard was bypassed outside this service
                logger.error(f"Table {row.table_id} has more than one open seat event")
                continue
            occupied[row.table_id] = OccupiedTable(
                table_id=row.table_id,
                seat_event_id=row.id,
                party_id=row.party_id,
                party_size=row.party_size,
                seat_time=row.seat_time,
            )
        return occupied

    def lock_table(self, table_id: str) -> Optional[Table]:
        """Load a table with a row lock held until the transaction ends.

        ``FOR UPDATE`` is ignored by SQLite, where the per-location lock is
        what serialises seating.
        """
        return self.db.scalars(
            select(Table).where(Table.id == table_id).with_for_update()
        ).first()
