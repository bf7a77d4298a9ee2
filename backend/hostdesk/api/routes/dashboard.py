"""Staff dashboard: floor overview, KPIs and on-demand recompute."""

import logging
from typing import Optional

from fastapi import APIRouter

from hostdesk.api.deps import DispatcherDep, Estimates, Reporting
from hostdesk.schemas.overview import KpiResponse, OverviewResponse, RecomputeResponse
from hostdesk.schemas.parties import PartyResponse

logger = logging.getLogger(__name__)

internal_router = APIRouter()
dashboard_router = APIRouter()


@internal_router.get("/overview", response_model=OverviewResponse)
def get_overview(reporting: Reporting, location_id: Optional[str] = None):
    return OverviewResponse.model_validate(reporting.overview(location_id))


@internal_router.post("/locations/{location_id}/recompute", response_model=RecomputeResponse)
def recompute_location(location_id: str, estimates: Estimates, dispatcher: DispatcherDep):
    """Re-derive the location's estimates now."""
    outcome = estimates.recompute_location(location_id, dispatcher=dispatcher)
    logger.info(f"On-demand recompute for location {location_id} (failed={outcome.failed})")
    return RecomputeResponse(
        location_id=outcome.location_id,
        computed_at=outcome.computed_at,
        waiting_parties=len(outcome.results),
        seatable_now=outcome.seatable,
        failed=outcome.failed,
    )


@dashboard_router.get("/kpis", response_model=KpiResponse)
def get_kpis(reporting: Reporting, location_id: str, time_window: str = "24h"):
    """Quoted vs actual wait, no-show and cancellation rates for the window."""
    kpis = reporting.kpis(location_id, time_window)
    kpis["active_waitlist"] = [PartyResponse.model_validate(p) for p in kpis["active_waitlist"]]
    return KpiResponse(**kpis)
