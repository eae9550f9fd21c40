"""Business rules for amendment, transfer, dispute and objection cases.

Every validator here is pure and returns a CaseValidation; none of them
persist anything, so services can call them speculatively before a
submission.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from land_registry.domain.models.amendment import AmendmentType, NewSectionSpec
from land_registry.domain.models.geometry import SectionGeometry, TopologyOptions
from land_registry.domain.models.objection_window import ObjectionWindow
from land_registry.domain.models.registry import DeedTitle, Section
from land_registry.domain.models.transfer import TransferType
from land_registry.domain.models.workflow_state import DeedState, PlanningState
from land_registry.domain.services.quota_calculator import (
    SectionArea,
    calculate_participation_quotas,
    validate_quota_sum,
)
from land_registry.domain.services.topology_validator import validate_topology

_REPLACING_TYPES = frozenset({AmendmentType.SUBDIVISION, AmendmentType.CONSOLIDATION})


@dataclass(frozen=True)
class CaseValidation:
    """Speculative validation outcome.

    Attributes:
        errors: Blocking problems.
        warnings: Non-blocking observations.
        geometry_valid: Whether supplied geometry passed topology checks.
        quota_valid: Whether quotas still sum to 100 after the change.
        details: Derived values (stamp duty, projected quotas, ...).
    """

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    geometry_valid: bool = True
    quota_valid: bool = True
    details: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "geometry_valid": self.geometry_valid,
            "quota_valid": self.quota_valid,
            **self.details,
        }


def registration_number(prefix: str, when: datetime, record_id: str) -> str:
    """Registry reference of the form ``PREFIX/<year>/<first 8 of id>``."""
    return f"{prefix}/{when.year}/{record_id.replace('-', '')[:8].upper()}"


def projected_sections(
    amendment_type: AmendmentType,
    affected_sections: Sequence[str],
    new_sections: Sequence[NewSectionSpec],
    scheme_sections: Sequence[Section],
) -> list[SectionArea]:
    """Section areas the scheme will have once the amendment is processed."""
    active = [s for s in scheme_sections if s.is_active]
    if amendment_type in _REPLACING_TYPES:
        active = [s for s in active if s.section_number not in affected_sections]
    projected = [SectionArea(s.section_number, s.area, s.section_type) for s in active]
    if amendment_type is AmendmentType.CONSOLIDATION and new_sections:
        merged_area = sum(
            s.area for s in scheme_sections if s.section_number in affected_sections
        )
        spec = new_sections[0]
        projected.append(SectionArea(spec.section_number, merged_area, spec.section_type))
    else:
        projected.extend(
            SectionArea(s.section_number, s.area, s.section_type) for s in new_sections
        )
    return projected


def validate_amendment(
    amendment_type: AmendmentType,
    affected_sections: Sequence[str],
    new_sections: Sequence[NewSectionSpec],
    scheme_sections: Sequence[Section],
    *,
    has_survey_plan: bool,
    precision: int = 4,
    topology_options: TopologyOptions | None = None,
) -> CaseValidation:
    """Validate an amendment against the current scheme sections."""
    errors: list[str] = []
    warnings: list[str] = []
    by_number = {s.section_number: s for s in scheme_sections if s.is_active}

    if not affected_sections:
        errors.append("At least one affected section must be specified")
    for number in affected_sections:
        if number not in by_number:
            errors.append(f"Affected section {number} not found in scheme")

    if amendment_type is AmendmentType.EXTENSION:
        if not new_sections:
            errors.append("Extension requires at least one new section")
        if not has_survey_plan:
            warnings.append("Extension should include survey plan")

    elif amendment_type is AmendmentType.SUBDIVISION:
        if len(affected_sections) != 1:
            errors.append("Subdivision requires exactly one affected section")
        if len(new_sections) < 2:
            errors.append("Subdivision requires at least 2 new sections")
        original = by_number.get(affected_sections[0]) if affected_sections else None
        if original is not None and new_sections:
            new_total = sum(s.area for s in new_sections)
            if abs(new_total - original.area) > 0.01:
                warnings.append(
                    f"Subdivision area mismatch: original {original.area} m², "
                    f"new total {new_total} m²"
                )

    elif amendment_type is AmendmentType.CONSOLIDATION:
        if len(affected_sections) < 2:
            errors.append("Consolidation requires at least 2 affected sections")
        if len(new_sections) != 1:
            errors.append("Consolidation requires exactly one resulting section")
        warnings.append("Consolidation requires all sections to have same owner")

    retained = set(by_number)
    if amendment_type in _REPLACING_TYPES:
        retained -= set(affected_sections)
    seen: set[str] = set()
    for spec in new_sections:
        if spec.area <= 0 and amendment_type is not AmendmentType.CONSOLIDATION:
            errors.append(f"New section {spec.section_number} must have a positive area")
        if spec.section_number in retained or spec.section_number in seen:
            errors.append(f"Section number {spec.section_number} is already in use")
        seen.add(spec.section_number)

    geometry_valid = True
    shaped = [s for s in new_sections if s.boundary]
    if shaped:
        report = validate_topology(
            [SectionGeometry(s.section_number, s.boundary, s.floor_level) for s in shaped],
            options=topology_options,
        )
        if not report.is_valid:
            geometry_valid = False
            errors.extend(f"Invalid geometry: {v.message}" for v in report.errors)

    quota_valid = True
    details: dict[str, Any] = {}
    if new_sections and not errors:
        calculation = calculate_participation_quotas(
            projected_sections(
                amendment_type, affected_sections, new_sections, scheme_sections
            ),
            precision=precision,
        )
        check = validate_quota_sum(calculation.quota_map().values(), tolerance=0.0001)
        if not calculation.is_valid or not check.is_valid:
            quota_valid = False
            errors.append(
                f"Quota calculation invalid: total quota {check.total:.4f}% "
                "(must be 100.0000%)"
            )
        else:
            details["projected_quotas"] = calculation.quota_map()

    return CaseValidation(
        errors=tuple(errors),
        warnings=tuple(warnings),
        geometry_valid=geometry_valid,
        quota_valid=quota_valid,
        details=details,
    )


def calculate_stamp_duty(
    transfer_type: TransferType,
    consideration: float | None,
    rate: float = 0.01,
    minimum: float = 50.0,
) -> float:
    """Stamp duty payable on a transfer.

    Sales pay ``rate`` of the consideration with a floor of ``minimum``.
    Gifts, inheritances and court orders are exempt.
    """
    if transfer_type is TransferType.SALE and consideration:
        return round(max(consideration * rate, minimum), 2)
    return 0.0


def validate_transfer(
    title: DeedTitle,
    title_state: Enum,
    *,
    transfer_type: TransferType,
    new_holder_name: str,
    new_holder_id: str | None,
    consideration: float | None,
    transfer_date: date,
    effective_date: date | None,
    today: date,
    stamp_duty_rate: float = 0.01,
    minimum_stamp_duty: float = 50.0,
) -> CaseValidation:
    """Validate a proposed transfer of a registered title."""
    errors: list[str] = []
    warnings: list[str] = []

    if title_state is not DeedState.REGISTERED:
        errors.append(
            "Title must be registered before transfer. "
            f"Current status: {title_state.value}"
        )
    if title.has_active_mortgage:
        warnings.append("Active mortgage found. Transfer may require lender consent.")

    if transfer_date > today:
        warnings.append("Transfer date is in the future")
    if effective_date is not None and effective_date < transfer_date:
        errors.append("Effective date cannot be before transfer date")

    if not new_holder_name.strip():
        errors.append("New holder name is required")
    if not new_holder_id:
        warnings.append("National ID number recommended for individual holders")

    if transfer_type is TransferType.SALE and not consideration:
        errors.append("Consideration amount is required for a sale")
    if consideration is not None and consideration < 0:
        errors.append("Consideration amount cannot be negative")

    return CaseValidation(
        errors=tuple(errors),
        warnings=tuple(warnings),
        details={
            "stamp_duty": calculate_stamp_duty(
                transfer_type, consideration, stamp_duty_rate, minimum_stamp_duty
            )
        },
    )


def validate_dispute(
    *,
    complainant_name: str,
    description: str,
    title_id: str | None,
    scheme_id: str | None,
    amendment_id: str | None,
    min_description_length: int = 50,
) -> CaseValidation:
    """Validate a dispute before lodging; references are checked by the caller."""
    errors: list[str] = []
    warnings: list[str] = []
    if not (title_id or scheme_id or amendment_id):
        errors.append(
            "At least one reference (title, scheme, or amendment) must be provided"
        )
    if not complainant_name.strip():
        errors.append("Complainant name is required")
    if not description.strip():
        errors.append("Dispute description is required")
    elif len(description.strip()) < min_description_length:
        warnings.append(
            f"Dispute description should be at least {min_description_length} "
            "characters for clarity"
        )
    return CaseValidation(errors=tuple(errors), warnings=tuple(warnings))


def validate_objection(
    *,
    objector_name: str,
    description: str,
    window: ObjectionWindow,
    now: datetime,
    plan_state: PlanningState,
    closing_soon_days: int = 7,
    min_description_length: int = 50,
) -> CaseValidation:
    """Validate an objection lodged inside the window.

    Window eligibility itself is enforced by the caller (WindowClosedError);
    here a window about to close only produces a warning.
    """
    errors: list[str] = []
    warnings: list[str] = []

    days_remaining = window.days_remaining(now)
    if window.contains(now) and days_remaining <= closing_soon_days:
        warnings.append(
            f"Objection window closes in {days_remaining} day(s). "
            "Submit soon to ensure your objection is considered."
        )
    if not objector_name.strip():
        errors.append("Objector name is required")
    if not description.strip():
        errors.append("Objection description is required")
    elif len(description.strip()) < min_description_length:
        warnings.append(
            f"Objection description should be at least {min_description_length} "
            "characters for clarity"
        )
    if plan_state is PlanningState.APPROVED:
        warnings.append(
            "Planning plan is already approved. Objection may not affect approval status."
        )
    return CaseValidation(
        errors=tuple(errors),
        warnings=tuple(warnings),
        details={"days_remaining": days_remaining},
    )
