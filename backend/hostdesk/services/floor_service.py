"""Restaurant groups, locations and tables.

Table changes alter what the scheduler can offer, so creating, activating or
deactivating a table recomputes the location's estimates in the same unit of
work.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostdesk.core.clock import Clock, system_clock
from hostdesk.core.config import Settings, get_settings
from hostdesk.core.exceptions import NotFoundError, ValidationError
from hostdesk.core.locks import location_locks
from hostdesk.db.session import unit_of_work
from hostdesk.models.location import Location, RestaurantGroup
from hostdesk.models.table import Table
from hostdesk.services.estimate_engine import EstimateEngine
from hostdesk.services.notifications import NotificationDispatcher, default_dispatcher, dispatch_all

logger = logging.getLogger(__name__)


class FloorService:
    """Manages the floor plan: who owns which location, which tables exist."""

    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        settings: Optional[Settings] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher or default_dispatcher
        self.engine = EstimateEngine(db, clock=clock, settings=settings or get_settings())

    # ===== GROUPS & LOCATIONS =====

    def create_group(self, name: str) -> RestaurantGroup:
        if not name or not name.strip():
            raise ValidationError("name is required")
        group = RestaurantGroup(name=name.strip())
        with unit_of_work(self.db):
            self.db.add(group)
        logger.info(f"Created restaurant group {group.id} ({group.name})")
        return group

    def list_groups(self) -> List[RestaurantGroup]:
        return list(self.db.scalars(select(RestaurantGroup).order_by(RestaurantGroup.name)).all())

    def create_location(
        self,
        group_id: str,
        name: str,
        address: Optional[str] = None,
        city: Optional[str] = None,
        is_active: bool = True,
    ) -> Location:
        if not name or not name.strip():
            raise ValidationError("name is required")
        if self.db.get(RestaurantGroup, group_id) is None:
            raise NotFoundError("RestaurantGroup", group_id)

        location = Location(group_id=group_id, name=name.strip(), address=address, city=city, is_active=is_active)
        with unit_of_work(self.db):
            self.db.add(location)
        logger.info(f"Created location {location.id} ({location.name}) in group {group_id}")
        return location

    def get_location(self, location_id: str) -> Location:
        location = self.db.get(Location, location_id)
        if location is None:
            raise NotFoundError("Location", location_id)
        return location

    def list_locations(self, group_id: Optional[str] = None) -> List[Location]:
        query = select(Location).order_by(Location.name, Location.id)
        if group_id:
            query = query.where(Location.group_id == group_id)
        return list(self.db.scalars(query).all())

    # ===== TABLES =====

    def create_table(
        self,
        location_id: str,
        capacity: int,
        label: Optional[str] = None,
        section: Optional[str] = None,
        is_active: bool = True,
    ) -> Table:
        if capacity is None or capacity < 1:
            raise ValidationError("capacity must be at least 1")
        self.get_location(location_id)

        with location_locks.hold(location_id):
            with unit_of_work(self.db):
                table = Table(
                    location_id=location_id,
                    capacity=capacity,
                    label=label,
                    section=section,
                    is_active=is_active,
                )
                self.db.add(table)
                self.db.flush()
                outcome = self.engine.recompute(location_id)

        logger.info(f"Created table {table.id} (capacity {capacity}) at location {location_id}")
        dispatch_all(self.dispatcher, outcome.alerts)
        return table

    def list_tables(self, location_id: str, include_inactive: bool = False) -> List[Table]:
        self.get_location(location_id)
        query = select(Table).where(Table.location_id == location_id)
        if not include_inactive:
            query = query.where(Table.is_active.is_(True))
        return list(self.db.scalars(query.order_by(Table.capacity, Table.id)).all())

    def set_table_active(self, table_id: str, is_active: bool) -> Table:
        """Activate or deactivate a table.

        Deactivating an occupied table is allowed; the party keeps its seat
        but the table is not offered again once it turns over.
        """
        table = self.db.get(Table, table_id)
        if table is None:
            raise NotFoundError("Table", table_id)

        with location_locks.hold(table.location_id):
            with unit_of_work(self.db):
                table = self.db.scalars(
                    select(Table)
                    .where(Table.id == table_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).one()
                if table.is_active == is_active:
                    return table
                table.is_active = is_active
                self.db.flush()
                outcome = self.engine.recompute(table.location_id)

        logger.info(f"Table {table_id} {'activated' if is_active else 'deactivated'}")
        dispatch_all(self.dispatcher, outcome.alerts)
        return table
