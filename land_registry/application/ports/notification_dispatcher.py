"""Notification dispatcher port.

Dispatch is fire-and-forget from the workflow's point of view: callers
bound it with a timeout and record the outcome, but a failure never
rolls back the transition that triggered it.
"""

from __future__ import annotations

from typing import Protocol

from land_registry.domain.models.notification import Notification


class NotificationDispatcherProtocol(Protocol):
    async def dispatch(self, notification: Notification) -> None:
        """Hand a notification to the delivery channel.

        Raises:
            Exception: Any delivery failure; the caller records it.
        """
        ...
