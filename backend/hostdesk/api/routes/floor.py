"""Restaurant groups, locations and tables."""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from hostdesk.api.deps import Floor
from hostdesk.schemas.floor import (
    LocationCreate,
    LocationResponse,
    RestaurantGroupCreate,
    RestaurantGroupResponse,
    TableCreate,
    TableResponse,
    TableUpdate,
)

router = APIRouter()


@router.post("/restaurant-groups", response_model=RestaurantGroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(body: RestaurantGroupCreate, floor: Floor):
    return floor.create_group(body.name)


@router.get("/restaurant-groups", response_model=List[RestaurantGroupResponse])
def list_groups(floor: Floor):
    return floor.list_groups()


@router.post("/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(body: LocationCreate, floor: Floor):
    return floor.create_location(
        group_id=body.group_id,
        name=body.name,
        address=body.address,
        city=body.city,
        is_active=body.is_active,
    )


@router.get("/locations", response_model=List[LocationResponse])
def list_locations(floor: Floor, group_id: Optional[str] = None):
    return floor.list_locations(group_id=group_id)


@router.post("/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(body: TableCreate, floor: Floor):
    """Add a table; the location's estimates are recomputed."""
    return floor.create_table(
        location_id=body.location_id,
        capacity=body.capacity,
        label=body.label,
        section=body.section,
        is_active=body.is_active,
    )


@router.get("/tables", response_model=List[TableResponse])
def list_tables(
    floor: Floor,
    location_id: str = Query(...),
    include_inactive: bool = False,
):
    return floor.list_tables(location_id, include_inactive=include_inactive)


@router.patch("/tables/{table_id}", response_model=TableResponse)
def update_table(table_id: str, body: TableUpdate, floor: Floor):
    """Activate or deactivate a table."""
    return floor.set_table_active(table_id, body.is_active)
