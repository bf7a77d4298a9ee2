"""Restaurant group, location and table schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RestaurantGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class RestaurantGroupResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LocationCreate(BaseModel):
    """Create location schema."""
    group_id: str
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    city: Optional[str] = None
    is_active: bool = True


class LocationResponse(BaseModel):
    id: str
    group_id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class TableCreate(BaseModel):
    """Create table schema."""
    location_id: str
    capacity: int = Field(..., ge=1, le=100)
    label: Optional[str] = None
    section: Optional[str] = None
    is_active: bool = True


class TableUpdate(BaseModel):
    """Activate or deactivate a table."""
    is_active: bool


class TableResponse(BaseModel):
    id: str
    location_id: str
    label: Optional[str] = None
    capacity: int
    section: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}
