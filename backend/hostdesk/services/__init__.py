# Services module

from hostdesk.services.service_history import ServiceHistory, ServiceSample
from hostdesk.services.table_inventory import TableInventory, OccupiedTable
from hostdesk.services.party_queue import PartyQueue
from hostdesk.services.seating_scheduler import (
    QueuedParty,
    ScheduleResult,
    SchedulerPolicy,
    SeatedTable,
    TableSlot,
    schedule,
)
from hostdesk.services.estimate_engine import EstimateEngine, RecomputeOutcome
from hostdesk.services.party_lifecycle import ALLOWED_TRANSITIONS, CheckInResult, PartyLifecycle
from hostdesk.services.floor_service import FloorService
from hostdesk.services.reporting_service import ReportingService
from hostdesk.services.notifications import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    ProximityAlert,
    RecordingNotificationDispatcher,
)
