"""Seat and complete events.

A seat event stays *open* until a complete event references it. While open it
carries its table id in ``open_table_id``, whose unique constraint allows one
open seating per table even across processes; completion clears it. The
unique ``seat_event_id`` makes closing the same seating twice impossible.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdesk.core.clock import utcnow
from hostdesk.db.base import Base, UUIDPrimaryKeyMixin


class SeatEvent(Base, UUIDPrimaryKeyMixin):
    """A party sat down at a table."""

    __tablename__ = "seat_events"
    __table_args__ = (
        Index("idx_seat_events_table", "table_id", "seat_time"),
    )

    party_id: Mapped[str] = mapped_column(String(36), ForeignKey("parties.id"), nullable=False, index=True)
    table_id: Mapped[str] = mapped_column(String(36), ForeignKey("tables.id"), nullable=False)
    seat_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    # NULL once closed; NULLs never collide in a unique constraint
    open_table_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, unique=True)

    party: Mapped["Party"] = relationship(back_populates="seat_events")
    complete_event: Mapped[Optional["CompleteEvent"]] = relationship(back_populates="seat_event", uselist=False)


class CompleteEvent(Base, UUIDPrimaryKeyMixin):
    """A table turned over: the party seated by ``seat_event_id`` left."""

    __tablename__ = "complete_events"
    __table_args__ = (
        Index("idx_complete_events_time", "complete_time"),
    )

    party_id: Mapped[str] = mapped_column(String(36), ForeignKey("parties.id"), nullable=False, index=True)
    table_id: Mapped[str] = mapped_column(String(36), ForeignKey("tables.id"), nullable=False)
    seat_event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("seat_events.id"), nullable=False, unique=True
    )
    complete_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    party: Mapped["Party"] = relationship(back_populates="complete_events")
    seat_event: Mapped[SeatEvent] = relationship(back_populates="complete_event")
