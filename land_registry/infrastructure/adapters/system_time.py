"""Wall-clock time authority for production."""

import time
from datetime import datetime, timezone

from land_registry.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """TimeAuthorityProtocol backed by the system clock (always UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
