"""Scheme topology validation service.

Loads section boundaries (and the parent parcel boundary of a survey
plan, when given) and runs the topology validator. The report is
advisory: a scheme with topology errors still returns ``success=True``
with ``is_valid=False`` so examiners can inspect every violation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.base import WorkflowServiceBase
from land_registry.domain.errors import EntityNotFoundError
from land_registry.domain.models.geometry import (
    Coordinate,
    SectionGeometry,
    TopologyOptions,
    TopologyReport,
)
from land_registry.domain.models.registry import Section
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.services.topology_validator import validate_topology


def section_geometries(sections: Iterable[Section]) -> list[SectionGeometry]:
    """Geometries of active sections that have a captured boundary."""
    return [
        SectionGeometry(s.section_number, s.boundary, s.floor_level)
        for s in sections
        if s.is_active and s.boundary
    ]


class TopologyService(WorkflowServiceBase):
    """Runs topology checks for a scheme's sections."""

    _domain_label = "survey"

    def __init__(self, *, registry: RegistryRepositoryProtocol, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry = registry

    async def build_report(
        self,
        scheme_id: str,
        survey_plan_id: str | None = None,
        options: TopologyOptions | None = None,
    ) -> TopologyReport:
        """Validate the scheme's geometry and return the raw report.

        Raises:
            EntityNotFoundError: If the scheme or survey plan does not exist.
        """
        scheme = await self._bounded("get_scheme", self._registry.get_scheme(scheme_id))
        if scheme is None:
            raise EntityNotFoundError("scheme", scheme_id)
        parent: tuple[Coordinate, ...] = ()
        if survey_plan_id is not None:
            plan = await self._bounded(
                "get_survey_plan", self._registry.get_survey_plan(survey_plan_id)
            )
            if plan is None:
                raise EntityNotFoundError("survey plan", survey_plan_id)
            parent = plan.parent_boundary
        sections = await self._bounded(
            "list_sections", self._registry.list_sections(scheme_id)
        )
        return validate_topology(
            section_geometries(sections),
            parent_boundary=parent,
            options=options or self._config.topology_options,
        )

    async def validate_scheme_topology(
        self,
        scheme_id: str,
        survey_plan_id: str | None = None,
        options: TopologyOptions | None = None,
    ) -> WorkflowResult:
        """Validate section geometry of a scheme.

        Args:
            scheme_id: Scheme whose sections are checked.
            survey_plan_id: Survey plan providing the parent parcel boundary;
                without it parcel containment and gap checks are skipped.
            options: Override of the configured tolerances.
        """

        async def _run() -> WorkflowResult:
            report = await self.build_report(scheme_id, survey_plan_id, options)
            self._log_operation("validate_scheme_topology", scheme_id=scheme_id).info(
                "topology_validated",
                errors=len(report.errors),
                warnings=len(report.warnings),
            )
            return WorkflowResult.ok(
                warnings=[v.message for v in report.warnings],
                scheme_id=scheme_id,
                is_valid=report.is_valid,
                report=report.to_dict(),
            )

        return await self._execute(
            "validate_scheme_topology", _run, entity_id=scheme_id
        )
