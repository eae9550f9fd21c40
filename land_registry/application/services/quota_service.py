"""Participation quota service.

Calculates quotas for the active sections of a scheme, persists them
with their common area shares, and records one quota history entry per
section whose quota changed.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.base import WorkflowServiceBase
from land_registry.application.services.workflow_hooks import WorkflowHooks
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.registry import (
    COMMON_SECTION_TYPE,
    QuotaHistoryEntry,
    Scheme,
    Section,
)
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.services.quota_calculator import (
    QuotaCalculation,
    SectionArea,
    SectionQuota,
    adjust_quota,
    calculate_participation_quotas,
    validate_quota_sum,
)


def default_common_property_area(scheme: Scheme, sections: Sequence[Section]) -> float:
    """Explicit common property area, else parcel area minus section areas."""
    if scheme.common_property_area is not None:
        return scheme.common_property_area
    if scheme.parent_parcel_area is None:
        return 0.0
    total = sum(s.area for s in sections if s.section_type != COMMON_SECTION_TYPE)
    return max(scheme.parent_parcel_area - total, 0.0)


def quota_rows(calculation: QuotaCalculation) -> list[dict[str, Any]]:
    return [
        {
            "section_number": q.section_number,
            "area": q.area,
            "participation_quota": q.participation_quota,
            "common_area_share": q.common_area_share,
        }
        for q in calculation.quotas
    ]


class QuotaService(WorkflowServiceBase):
    """Calculates, adjusts and records participation quotas."""

    _domain_label = "planning"

    def __init__(
        self,
        *,
        registry: RegistryRepositoryProtocol,
        hooks: WorkflowHooks,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._registry = registry
        self._hooks = hooks

    async def _load(self, scheme_id: str) -> tuple[Scheme, list[Section]]:
        scheme = await self._bounded("get_scheme", self._registry.get_scheme(scheme_id))
        if scheme is None:
            raise EntityNotFoundError("scheme", scheme_id)
        sections = await self._bounded(
            "list_sections", self._registry.list_sections(scheme_id)
        )
        return scheme, sections

    async def _persist(
        self,
        scheme_id: str,
        sections: Sequence[Section],
        calculation: QuotaCalculation,
        actor: Actor,
        reason: str,
    ) -> list[str]:
        await self._bounded(
            "update_quotas",
            self._registry.update_quotas(
                scheme_id,
                {
                    q.section_number: (q.participation_quota, q.common_area_share)
                    for q in calculation.quotas
                },
            ),
        )
        previous = {s.section_number: s.participation_quota for s in sections}
        now = self._time.now()
        entries = [
            QuotaHistoryEntry.create(
                scheme_id=scheme_id,
                section_number=q.section_number,
                old_quota=previous.get(q.section_number),
                new_quota=q.participation_quota,
                reason=reason,
                changed_by=actor.actor_id,
                changed_at=now,
            )
            for q in calculation.quotas
            if previous.get(q.section_number) != q.participation_quota
        ]
        if entries:
            await self._bounded(
                "append_quota_history", self._registry.append_quota_history(entries)
            )
        return await self._hooks.audit(
            entity_type="scheme",
            entity_id=scheme_id,
            action="quotas_updated",
            actor_id=actor.actor_id,
            old_values={"quotas": previous},
            new_values={"quotas": calculation.quota_map(), "reason": reason},
        )

    async def calculate_quotas(
        self,
        scheme_id: str,
        actor: Actor,
        common_property_area: float | None = None,
        persist: bool = True,
    ) -> WorkflowResult:
        """Calculate quotas proportional to section area.

        Args:
            scheme_id: Scheme whose active sections are apportioned.
            actor: Caller, recorded in quota history.
            common_property_area: Override of the common property area.
            persist: False to preview without writing.
        """

        async def _run() -> WorkflowResult:
            scheme, sections = await self._load(scheme_id)
            common = (
                common_property_area
                if common_property_area is not None
                else default_common_property_area(scheme, sections)
            )
            calculation = calculate_participation_quotas(
                [SectionArea(s.section_number, s.area, s.section_type) for s in sections],
                common_property_area=common,
                precision=self._config.quota_precision,
            )
            if not calculation.is_valid:
                raise ValidationError(
                    calculation.errors[0],
                    errors=calculation.errors,
                    warnings=calculation.warnings,
                )
            check = validate_quota_sum(
                calculation.quota_map().values(), self._config.quota_tolerance
            )
            warnings = list(calculation.warnings)
            if persist:
                warnings += await self._persist(
                    scheme_id, sections, calculation, actor, "quota_calculation"
                )
            self._log_operation("calculate_quotas", scheme_id=scheme_id).info(
                "quotas_calculated",
                sections=len(calculation.quotas),
                adjusted_section=calculation.adjusted_section,
                persisted=persist,
            )
            return WorkflowResult.ok(
                warnings=warnings,
                scheme_id=scheme_id,
                quotas=quota_rows(calculation),
                total_area=calculation.total_area,
                total_quota=check.total,
                common_property_area=common,
                adjusted_section=calculation.adjusted_section,
                is_valid=check.is_valid,
                persisted=persist,
            )

        return await self._execute("calculate_quotas", _run, entity_id=scheme_id)

    async def adjust_unit_quota(
        self,
        scheme_id: str,
        section_number: str,
        new_quota: float,
        actor: Actor,
        common_property_area: float | None = None,
        reason: str = "manual_adjustment",
    ) -> WorkflowResult:
        """Pin one section's quota and redistribute the others.

        Fails with OUT_OF_RANGE when ``new_quota`` is outside [0, 100].
        """

        async def _run() -> WorkflowResult:
            scheme, sections = await self._load(scheme_id)
            eligible = [s for s in sections if s.section_type != COMMON_SECTION_TYPE]
            common = (
                common_property_area
                if common_property_area is not None
                else default_common_property_area(scheme, sections)
            )
            current = [
                SectionQuota(
                    section_number=s.section_number,
                    area=s.area,
                    participation_quota=s.participation_quota or 0.0,
                    common_area_share=s.common_area_share or 0.0,
                )
                for s in eligible
            ]
            calculation = adjust_quota(
                current,
                section_number,
                new_quota,
                common_property_area=common,
                precision=self._config.quota_precision,
            )
            warnings = list(calculation.warnings)
            warnings += await self._persist(scheme_id, sections, calculation, actor, reason)
            return WorkflowResult.ok(
                warnings=warnings,
                scheme_id=scheme_id,
                section_number=section_number,
                quotas=quota_rows(calculation),
                total_quota=calculation.total_quota,
                adjusted_section=calculation.adjusted_section,
            )

        return await self._execute(
            "adjust_unit_quota", _run, entity_id=scheme_id, section_number=section_number
        )

    async def get_quota_history(self, scheme_id: str) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            entries = await self._bounded(
                "list_quota_history", self._registry.list_quota_history(scheme_id)
            )
            return WorkflowResult.ok(
                scheme_id=scheme_id,
                history=[
                    {
                        "section_number": e.section_number,
                        "old_quota": e.old_quota,
                        "new_quota": e.new_quota,
                        "reason": e.reason,
                        "changed_by": e.changed_by,
                        "changed_at": e.changed_at.isoformat(),
                    }
                    for e in entries
                ],
            )

        return await self._execute("get_quota_history", _run, entity_id=scheme_id)
