"""Waiting queue of a location, in check-in order."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostdesk.models.party import Party, PartyStatus, TERMINAL_STATUSES


class PartyQueue:
    """Parties in ``waiting`` status ordered by (check_in_time, id)."""

    def __init__(self, db: Session):
        self.db = db

    def waiting(self, location_id: str) -> List[Party]:
        return list(
            self.db.scalars(
                select(Party)
                .where(Party.location_id == location_id, Party.status == PartyStatus.WAITING)
                .order_by(Party.check_in_time, Party.id)
            ).all()
        )

    def position(self, party: Party) -> int:
        """Waiting parties that checked in strictly earlier, plus one."""
        ahead = self.db.scalar(
            select(func.count(Party.id)).where(
                Party.location_id == party.location_id,
                Party.status == PartyStatus.WAITING,
                Party.check_in_time < party.check_in_time,
            )
        )
        return (ahead or 0) + 1

    def find_recent_duplicate(
        self,
        location_id: str,
        party_size: int,
        source: str,
        since: datetime,
    ) -> Optional[Party]:
        """Most recent unterminated party with the same check-in key since ``since``."""
        return self.db.scalars(
            select(Party)
            .where(
                Party.location_id == location_id,
                Party.party_size == party_size,
                Party.source == source,
                Party.check_in_time >= since,
                Party.status.not_in(list(TERMINAL_STATUSES)),
            )
            .order_by(Party.check_in_time.desc(), Party.id)
            .limit(1)
        ).first()
