"""Statutory objection window attached to a planning scheme."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

_DAY_SECONDS = 86400.0


@dataclass(frozen=True)
class ObjectionWindow:
    """Inclusive interval ``[window_start, window_end]``.

    Objections are acceptable while "now" lies inside the interval, both
    endpoints included.
    """

    window_start: datetime
    window_end: datetime

    def __post_init__(self) -> None:
        if self.window_end < self.window_start:
            raise ValueError("window_end must not precede window_start")

    @classmethod
    def opening_at(cls, start: datetime, days: int) -> ObjectionWindow:
        """Window of ``days`` days beginning at ``start``."""
        return cls(window_start=start, window_end=start + timedelta(days=days))

    def contains(self, now: datetime) -> bool:
        return self.window_start <= now <= self.window_end

    def has_closed(self, now: datetime) -> bool:
        return now > self.window_end

    def days_remaining(self, now: datetime) -> int:
        """Whole days until the window closes; negative once it has closed.

        Rounded up while open (a few hours left counts as one day) and
        rounded down once closed (one second late is -1).
        """
        delta = (self.window_end - now).total_seconds() / _DAY_SECONDS
        if delta >= 0:
            return math.ceil(delta)
        return math.floor(delta)
