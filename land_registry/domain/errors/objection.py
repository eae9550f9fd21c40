"""Time-window eligibility errors."""

from __future__ import annotations

from datetime import datetime

from land_registry.domain.exceptions import LandRegistryError


class WindowClosedError(LandRegistryError):
    """Raised when an objection is lodged outside the objection window.

    Attributes:
        plan_id: Planning scheme the objection targeted.
        days_remaining: Whole days left; negative once the window has closed.
        window_start: Start of the window.
        window_end: End of the window.
    """

    error_code = "WINDOW_CLOSED"

    def __init__(
        self,
        plan_id: str,
        days_remaining: int,
        window_start: datetime,
        window_end: datetime,
        not_yet_open: bool = False,
    ) -> None:
        self.plan_id = plan_id
        self.days_remaining = days_remaining
        self.window_start = window_start
        self.window_end = window_end
        self.not_yet_open = not_yet_open
        if not_yet_open:
            message = (
                f"Objection window for plan {plan_id} opens at "
                f"{window_start.isoformat()}"
            )
        else:
            message = (
                f"Objection window for plan {plan_id} closed at "
                f"{window_end.isoformat()} ({abs(days_remaining)} day(s) ago)"
            )
        super().__init__(message)
