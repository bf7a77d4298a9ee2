"""Request-scoped service wiring.

The clock and the notification dispatcher are dependencies so tests can swap
them through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends

from hostdesk.core.clock import Clock, system_clock
from hostdesk.core.config import Settings, get_settings
from hostdesk.db.session import DbSession
from hostdesk.services.estimate_engine import EstimateEngine
from hostdesk.services.floor_service import FloorService
from hostdesk.services.notifications import NotificationDispatcher, default_dispatcher
from hostdesk.services.party_lifecycle import PartyLifecycle
from hostdesk.services.reporting_service import ReportingService


def get_clock() -> Clock:
    return system_clock


def get_dispatcher() -> NotificationDispatcher:
    return default_dispatcher


ClockDep = Annotated[Clock, Depends(get_clock)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_lifecycle(
    db: DbSession, clock: ClockDep, settings: SettingsDep, dispatcher: DispatcherDep
) -> PartyLifecycle:
    return PartyLifecycle(db, clock=clock, settings=settings, dispatcher=dispatcher)


def get_floor(
    db: DbSession, clock: ClockDep, settings: SettingsDep, dispatcher: DispatcherDep
) -> FloorService:
    return FloorService(db, clock=clock, settings=settings, dispatcher=dispatcher)


def get_reporting(db: DbSession, clock: ClockDep, settings: SettingsDep) -> ReportingService:
    return ReportingService(db, clock=clock, settings=settings)


def get_estimate_engine(db: DbSession, clock: ClockDep, settings: SettingsDep) -> EstimateEngine:
    return EstimateEngine(db, clock=clock, settings=settings)


Lifecycle = Annotated[PartyLifecycle, Depends(get_lifecycle)]
Floor = Annotated[FloorService, Depends(get_floor)]
Reporting = Annotated[ReportingService, Depends(get_reporting)]
Estimates = Annotated[EstimateEngine, Depends(get_estimate_engine)]
