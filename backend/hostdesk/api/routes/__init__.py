"""API routes."""

from fastapi import APIRouter

from hostdesk.api.routes import dashboard, floor, parties, seating

api_router = APIRouter()

api_router.include_router(floor.router, tags=["floor"])
api_router.include_router(parties.router, prefix="/parties", tags=["parties"])
api_router.include_router(seating.router, tags=["seating"])
api_router.include_router(dashboard.internal_router, prefix="/internal", tags=["internal"])
api_router.include_router(dashboard.dashboard_router, prefix="/dashboard", tags=["dashboard"])
