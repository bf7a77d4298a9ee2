"""Restaurant group and location models."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdesk.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RestaurantGroup(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Company operating one or more locations."""

    __tablename__ = "restaurant_groups"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    locations: Mapped[List["Location"]] = relationship(back_populates="group")


class Location(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A restaurant site. Owns its tables and parties."""

    __tablename__ = "locations"

    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("restaurant_groups.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    group: Mapped[RestaurantGroup] = relationship(back_populates="locations")
