"""Registry repository port.

Storage contract for the registry records that workflows read and that
amendment and transfer processing mutate.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from land_registry.domain.models.registry import (
    DeedTitle,
    QuotaHistoryEntry,
    Scheme,
    Section,
    SurveyPlan,
)


class RegistryRepositoryProtocol(Protocol):
    """Protocol for scheme, section, survey plan and title storage."""

    async def get_scheme(self, scheme_id: str) -> Scheme | None: ...

    async def save_scheme(self, scheme: Scheme) -> None: ...

    async def list_sections(
        self, scheme_id: str, include_cancelled: bool = False
    ) -> list[Section]:
        """List sections of a scheme ordered by section number."""
        ...

    async def get_section(self, scheme_id: str, section_number: str) -> Section | None: ...

    async def save_sections(self, sections: Sequence[Section]) -> None:
        """Insert or replace sections keyed by (scheme_id, section_number)."""
        ...

    async def update_quotas(
        self,
        scheme_id: str,
        quotas: Mapping[str, tuple[float, float]],
    ) -> None:
        """Set (participation_quota, common_area_share) for the named sections.

        Raises:
            EntityNotFoundError: If a named section does not exist.
        """
        ...

    async def apply_section_changes(
        self,
        scheme_id: str,
        cancelled: Sequence[str],
        added: Sequence[Section],
        quotas: Mapping[str, tuple[float, float]],
    ) -> None:
        """Cancel sections, add sections and set quotas in one atomic step.

        Raises:
            EntityNotFoundError: If a section to cancel does not exist.
            ValueError: If an added section number is already active.
        """
        ...

    async def append_quota_history(self, entries: Sequence[QuotaHistoryEntry]) -> None: ...

    async def list_quota_history(self, scheme_id: str) -> list[QuotaHistoryEntry]: ...

    async def get_survey_plan(self, plan_id: str) -> SurveyPlan | None: ...

    async def save_survey_plan(self, plan: SurveyPlan) -> None: ...

    async def get_title(self, title_id: str) -> DeedTitle | None: ...

    async def save_title(self, title: DeedTitle) -> None: ...

    async def update_title_holder(
        self,
        title_id: str,
        expected_holder_name: str,
        updated: DeedTitle,
    ) -> DeedTitle:
        """Replace the title only if its holder is still ``expected_holder_name``.

        Raises:
            EntityNotFoundError: If the title does not exist.
            ConcurrentModificationError: If the holder has changed.
        """
        ...
