"""Notification dispatcher stub implementation.

Records dispatched notifications in memory. Tests can make delivery
fail for specific parties or hang (to exercise the dispatch timeout).
"""

from __future__ import annotations

import asyncio

from structlog import get_logger

from land_registry.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from land_registry.domain.models.notification import Notification

logger = get_logger(__name__)


class NotificationDispatcherStub(NotificationDispatcherProtocol):
    """Stub dispatcher (testing and development).

    Attributes:
        sent: Notifications accepted for delivery.
        fail_parties: Parties whose notifications raise ConnectionError.
        delay: Seconds to sleep before accepting a notification.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self.fail_parties: set[str] = set()
        self.delay: float = 0.0

    def clear(self) -> None:
        self.sent.clear()
        self.fail_parties.clear()
        self.delay = 0.0

    def sent_to(self, party: str) -> list[Notification]:
        return [n for n in self.sent if n.party == party]

    def sent_events(self) -> list[str]:
        return [n.event_type for n in self.sent]

    async def dispatch(self, notification: Notification) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if notification.party in self.fail_parties:
            raise ConnectionError(f"Delivery to {notification.party} unavailable")
        self.sent.append(notification)
        logger.debug(
            "notification_dispatched",
            event_type=notification.event_type,
            recipient_id=notification.recipient_id,
        )
