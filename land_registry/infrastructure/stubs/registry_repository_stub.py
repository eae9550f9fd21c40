"""Registry repository stub implementation.

In-memory storage for schemes, sections, survey plans, titles and quota
history.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import replace

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.domain.errors import ConcurrentModificationError, EntityNotFoundError
from land_registry.domain.models.registry import (
    DeedTitle,
    QuotaHistoryEntry,
    Scheme,
    Section,
    SurveyPlan,
)


class RegistryRepositoryStub(RegistryRepositoryProtocol):
    """In-memory stub for registry records (testing only)."""

    def __init__(self) -> None:
        self._schemes: dict[str, Scheme] = {}
        self._sections: dict[tuple[str, str], Section] = {}
        self._survey_plans: dict[str, SurveyPlan] = {}
        self._titles: dict[str, DeedTitle] = {}
        self._quota_history: list[QuotaHistoryEntry] = []
        self._lock = asyncio.Lock()
        self.section_change_count = 0

    def clear(self) -> None:
        """Clear all stored data."""
        self._schemes.clear()
        self._sections.clear()
        self._survey_plans.clear()
        self._titles.clear()
        self._quota_history.clear()
        self.section_change_count = 0

    async def get_scheme(self, scheme_id: str) -> Scheme | None:
        return self._schemes.get(scheme_id)

    async def save_scheme(self, scheme: Scheme) -> None:
        self._schemes[scheme.scheme_id] = scheme

    async def list_sections(
        self, scheme_id: str, include_cancelled: bool = False
    ) -> list[Section]:
        sections = [
            s
            for (sid, _), s in self._sections.items()
            if sid == scheme_id and (include_cancelled or s.is_active)
        ]
        return sorted(sections, key=lambda s: s.section_number)

    async def get_section(self, scheme_id: str, section_number: str) -> Section | None:
        return self._sections.get((scheme_id, section_number))

    async def save_sections(self, sections: Sequence[Section]) -> None:
        for section in sections:
            self._sections[(section.scheme_id, section.section_number)] = section

    async def update_quotas(
        self,
        scheme_id: str,
        quotas: Mapping[str, tuple[float, float]],
    ) -> None:
        async with self._lock:
            self._apply_quotas(scheme_id, quotas)

    def _apply_quotas(
        self, scheme_id: str, quotas: Mapping[str, tuple[float, float]]
    ) -> None:
        for number in quotas:
            if (scheme_id, number) not in self._sections:
                raise EntityNotFoundError("section", f"{scheme_id}/{number}")
        for number, (quota, share) in quotas.items():
            key = (scheme_id, number)
            self._sections[key] = replace(
                self._sections[key], participation_quota=quota, common_area_share=share
            )

    async def apply_section_changes(
        self,
        scheme_id: str,
        cancelled: Sequence[str],
        added: Sequence[Section],
        quotas: Mapping[str, tuple[float, float]],
    ) -> None:
        async with self._lock:
            # Validate everything before the first write
            for number in cancelled:
                if (scheme_id, number) not in self._sections:
                    raise EntityNotFoundError("section", f"{scheme_id}/{number}")
            for section in added:
                existing = self._sections.get((scheme_id, section.section_number))
                if existing is not None and existing.is_active and (
                    section.section_number not in cancelled
                ):
                    raise ValueError(
                        f"Section {section.section_number} already exists in {scheme_id}"
                    )
            snapshot = dict(self._sections)
            try:
                for number in cancelled:
                    key = (scheme_id, number)
                    self._sections[key] = self._sections[key].cancelled()
                for section in added:
                    self._sections[(scheme_id, section.section_number)] = section
                self._apply_quotas(scheme_id, quotas)
            except Exception:
                self._sections = snapshot
                raise
            self.section_change_count += 1

    async def append_quota_history(self, entries: Sequence[QuotaHistoryEntry]) -> None:
        self._quota_history.extend(entries)

    async def list_quota_history(self, scheme_id: str) -> list[QuotaHistoryEntry]:
        return [e for e in self._quota_history if e.scheme_id == scheme_id]

    async def get_survey_plan(self, plan_id: str) -> SurveyPlan | None:
        return self._survey_plans.get(plan_id)

    async def save_survey_plan(self, plan: SurveyPlan) -> None:
        self._survey_plans[plan.plan_id] = plan

    async def get_title(self, title_id: str) -> DeedTitle | None:
        return self._titles.get(title_id)

    async def save_title(self, title: DeedTitle) -> None:
        self._titles[title.title_id] = title

    async def update_title_holder(
        self,
        title_id: str,
        expected_holder_name: str,
        updated: DeedTitle,
    ) -> DeedTitle:
        async with self._lock:
            current = self._titles.get(title_id)
            if current is None:
                raise EntityNotFoundError("title", title_id)
            if current.holder_name != expected_holder_name:
                raise ConcurrentModificationError(
                    title_id, expected_holder_name, operation="holder_update"
                )
            self._titles[title_id] = updated
            return updated
