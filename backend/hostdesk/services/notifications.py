"""Guest notification dispatch.

Delivery (SMS, pager, push) is an external collaborator. The core only
decides *when* a guest should hear that their table is close, and hands the
party to a dispatcher after the triggering transaction has committed.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProximityAlert:
    """A waiting party reached the notification threshold."""

    party_id: str
    location_id: str
    guest_name: str
    guest_phone: Optional[str]
    position: int
    estimated_wait_minutes: Optional[int]


class NotificationDispatcher:
    """Interface for delivering guest notifications."""

    def notify_almost_ready(self, alert: ProximityAlert) -> None:
        raise NotImplementedError


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher: records the message instead of sending it."""

    def notify_almost_ready(self, alert: ProximityAlert) -> None:
        phone = f"{alert.guest_phone[:4]}***" if alert.guest_phone else "no phone"
        logger.info(
            f"SMS not configured. Would tell party {alert.party_id} ({phone}) they are "
            f"#{alert.position} in line, about {alert.estimated_wait_minutes} min"
        )


class RecordingNotificationDispatcher(NotificationDispatcher):
    """Keeps alerts in memory; used by tests and the demo seed."""

    def __init__(self):
        self.alerts: List[ProximityAlert] = []

    def notify_almost_ready(self, alert: ProximityAlert) -> None:
        self.alerts.append(alert)


def dispatch_all(dispatcher: NotificationDispatcher, alerts: List[ProximityAlert]) -> None:
    """Deliver alerts one by one; a failed delivery is logged and does not stop the rest."""
    for alert in alerts:
        try:
            dispatcher.notify_almost_ready(alert)
        except Exception as e:
            logger.error(f"Failed to notify party {alert.party_id}: {e}", exc_info=True)


default_dispatcher = LoggingNotificationDispatcher()
