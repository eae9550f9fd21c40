"""Case repository port for amendment, transfer, dispute and objection cases.

Cases carry their own status field; every status change is a conditional
update on the status observed at read time.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, TypeVar


class CaseRecord(Protocol):
    """Structural type every case record satisfies."""

    @property
    def record_id(self) -> str: ...

    @property
    def status(self) -> Enum: ...


CaseT = TypeVar("CaseT", bound=CaseRecord)


class CaseRepositoryProtocol(Protocol[CaseT]):
    """Protocol for case storage."""

    async def add(self, record: CaseT) -> None:
        """Store a new case.

        Raises:
            ValueError: If the id is already taken.
        """
        ...

    async def get(self, record_id: str) -> CaseT | None: ...

    async def find(self, field: str, value: object) -> list[CaseT]:
        """List cases whose attribute ``field`` equals ``value``."""
        ...

    async def update_cas(
        self,
        record_id: str,
        expected_status: Enum,
        updated: CaseT,
    ) -> CaseT:
        """Replace the case only if its status is still ``expected_status``.

        Raises:
            EntityNotFoundError: If the case does not exist.
            ConcurrentModificationError: If the status has changed.
        """
        ...
