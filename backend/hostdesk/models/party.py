"""Party and status audit models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdesk.core.clock import utcnow
from hostdesk.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class PartyStatus(str, Enum):
    WAITING = "waiting"
    NOTIFIED = "notified"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({PartyStatus.COMPLETED, PartyStatus.CANCELLED, PartyStatus.NO_SHOW})

# Parties still in line for a table
QUEUED_STATUSES = (PartyStatus.WAITING, PartyStatus.NOTIFIED)


class EstimateStatus(str, Enum):
    """How a published estimate was derived."""

    SEATABLE = "seatable"  # a free table fits right now, wait is 0
    TURNOVER = "turnover"  # earliest expected turnover of an occupied table
    FALLBACK = "fallback"  # location-wide default, nothing turns over in time
    NO_CAPACITY = "no_capacity"  # no active table can ever seat this party


def _enum_column(enum_cls):
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda e: [member.value for member in e],
    )


class Party(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A walk-in group awaiting or occupying a table."""

    __tablename__ = "parties"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="ck_parties_size_positive"),
        Index("idx_parties_location_status", "location_id", "status"),
        Index("idx_parties_location_checkin", "location_id", "check_in_time"),
    )

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("locations.id"), nullable=False, index=True
    )

    # Guest info
    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="walk_in")  # kiosk, host, web, qr

    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    check_in_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    status: Mapped[PartyStatus] = mapped_column(
        _enum_column(PartyStatus), nullable=False, default=PartyStatus.WAITING
    )

    # Published estimate, owned by EstimateEngine
    estimated_wait_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    confidence_low: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    confidence_high: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    estimate_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    estimate_status: Mapped[Optional[EstimateStatus]] = mapped_column(_enum_column(EstimateStatus), nullable=True)
    raw_estimate_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # before damping
    recommended_table_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("tables.id"), nullable=True
    )
    quoted_wait_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # what we told the guest at check-in

    proximity_notified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    seat_events: Mapped[List["SeatEvent"]] = relationship(
        back_populates="party", order_by="SeatEvent.seat_time"
    )
    complete_events: Mapped[List["CompleteEvent"]] = relationship(
        back_populates="party", order_by="CompleteEvent.complete_time"
    )
    status_log: Mapped[List["StatusLogEntry"]] = relationship(
        back_populates="party", order_by=lambda: [StatusLogEntry.timestamp, StatusLogEntry.id]
    )


class StatusLogEntry(Base):
    """Append-only audit record of a party's status changes."""

    __tablename__ = "status_log_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    party_id: Mapped[str] = mapped_column(String(36), ForeignKey("parties.id"), nullable=False, index=True)
    old_status: Mapped[Optional[PartyStatus]] = mapped_column(_enum_column(PartyStatus), nullable=True)  # None for check-in
    new_status: Mapped[PartyStatus] = mapped_column(_enum_column(PartyStatus), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    party: Mapped[Party] = relationship(back_populates="status_log")
