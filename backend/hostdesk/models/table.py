"""Table model."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hostdesk.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Table(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A seatable unit.

    Occupancy is not stored here; a table is occupied while it has a seat
    event without a matching complete event (see ``TableInventory``).
    """

    __tablename__ = "tables"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_tables_capacity_positive"),
        Index("idx_tables_location_active", "location_id", "is_active"),
    )

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("locations.id"), nullable=False, index=True
    )
    label: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # T1, Patio 3, ...
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # Bar, Patio, Main
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
