"""Decision preconditions, checklist validation and defect tracking."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from land_registry.domain.errors.review import (
    ChecklistIncompleteError,
    MissingReasonError,
)
from land_registry.domain.errors.validation import ValidationError
from land_registry.domain.models.checklist import ChecklistItem
from land_registry.domain.models.defect import (
    CorrectionParty,
    DefectSeverity,
    ExaminationDefect,
)
from land_registry.domain.models.review import ReviewDecision

SUGGESTED_CORRECTIONS: dict[str, str] = {
    "legal-1": "Verify legal description matches sealed survey data exactly",
    "legal-2": "Ensure section number in legal description matches survey section number",
    "legal-3": "Update area in legal description to match survey area",
    "legal-4": "Update participation quota to match survey quota",
    "legal-5": "Review and complete rights and conditions section",
    "legal-6": "Ensure restrictions comply with Sectional Titles Act",
    "survey-1": "Verify survey plan is sealed before proceeding",
    "survey-2": "Verify survey seal hash is valid",
    "survey-3": "Compare section geometry with survey geometry",
    "survey-4": "Ensure scheme plan is referenced in documents",
    "holder-1": "Complete holder name field",
    "holder-2": "Provide valid holder ID number",
    "holder-3": "Specify correct holder type",
    "holder-4": "Add holder contact information",
    "doc-1": "Attach all required supporting documents",
    "doc-2": "Ensure conveyancer signature is present",
    "doc-3": "Verify document formatting meets requirements",
    "tenure-1": "Verify compliance with communal tenure regulations",
    "tenure-2": "Check for conflicts with existing land rights",
    "tenure-3": "Document transfer restrictions if applicable",
}
DEFAULT_CORRECTION = "Review and correct as necessary"

_PLANNER_CATEGORIES = frozenset({"planning", "legal"})
_SURVEYOR_CATEGORIES = frozenset({"survey", "geometry"})


@dataclass(frozen=True)
class ChecklistValidation:
    """Outcome of checking a checklist.

    Attributes:
        missing_required: Descriptions of incomplete required items.
        missing_optional: Descriptions of incomplete optional items.
    """

    missing_required: tuple[str, ...]
    missing_optional: tuple[str, ...]

    @property
    def is_valid(self) -> bool:
        return not self.missing_required


def parse_decision(decision: ReviewDecision | str) -> ReviewDecision:
    """Parse a decision value.

    Raises:
        ValidationError: If the value is not approve, reject or request_revision.
    """
    if isinstance(decision, ReviewDecision):
        return decision
    try:
        return ReviewDecision(decision)
    except ValueError:
        raise ValidationError(
            f"Invalid decision '{decision}'. Expected one of "
            f"{[d.value for d in ReviewDecision]}",
            field="decision",
        ) from None


def validate_checklist(checklist: Iterable[ChecklistItem]) -> ChecklistValidation:
    items = list(checklist)
    return ChecklistValidation(
        missing_required=tuple(
            i.description for i in items if i.required and not i.completed
        ),
        missing_optional=tuple(
            i.description for i in items if not i.required and not i.completed
        ),
    )


def require_decision_preconditions(
    decision: ReviewDecision,
    notes: str | None,
    checklist: Sequence[ChecklistItem],
) -> ChecklistValidation:
    """Enforce the business rules that gate a review decision.

    Approval needs every required checklist item complete, whatever else
    the request says. Rejection and revision requests need a reason.

    Returns:
        The checklist validation (optional gaps become caller warnings).

    Raises:
        ChecklistIncompleteError: Approve with required items open.
        MissingReasonError: Reject or request_revision without notes.
    """
    validation = validate_checklist(checklist)
    if decision is ReviewDecision.APPROVE:
        if not validation.is_valid:
            raise ChecklistIncompleteError(validation.missing_required)
    elif not (notes and notes.strip()):
        raise MissingReasonError(decision.value)
    return validation


def generate_defects_from_checklist(
    checklist: Iterable[ChecklistItem],
    section_id: str | None = None,
) -> tuple[ExaminationDefect, ...]:
    """Create one defect per incomplete item that declares a defect severity."""
    return tuple(
        ExaminationDefect(
            defect_id=f"defect-{item.item_id}",
            title=f"Missing: {item.description}",
            description=item.notes or item.description,
            severity=item.defect_severity,
            category=item.category,
            checklist_item_id=item.item_id,
            section_id=section_id,
            suggested_correction=SUGGESTED_CORRECTIONS.get(
                item.item_id, DEFAULT_CORRECTION
            ),
        )
        for item in checklist
        if not item.completed and item.defect_severity is not None
    )


def categorize_defects(
    defects: Iterable[ExaminationDefect],
) -> dict[DefectSeverity, tuple[ExaminationDefect, ...]]:
    """Group defects by severity; every severity key is present."""
    items = list(defects)
    return {
        severity: tuple(d for d in items if d.severity is severity)
        for severity in DefectSeverity
    }


def has_blocking_defects(defects: Iterable[ExaminationDefect]) -> bool:
    return any(d.is_blocking for d in defects)


def responsible_party(defect: ExaminationDefect) -> CorrectionParty:
    """Decide who must correct a defect.

    Planning and legal defects go to the planner, survey and geometry
    defects to the surveyor, and everything else to the conveyancer.
    """
    category = defect.category.lower()
    title = defect.title.lower()
    if category in _PLANNER_CATEGORIES or "planning" in title:
        return CorrectionParty.PLANNER
    if category in _SURVEYOR_CATEGORIES or "survey" in title or "geometry" in title:
        return CorrectionParty.SURVEYOR
    return CorrectionParty.CONVEYANCER


def route_defects(
    defects: Iterable[ExaminationDefect],
) -> dict[CorrectionParty, tuple[ExaminationDefect, ...]]:
    """Group defects by responsible party; parties with none are omitted."""
    routed: dict[CorrectionParty, list[ExaminationDefect]] = {}
    for defect in defects:
        routed.setdefault(responsible_party(defect), []).append(defect)
    return {party: tuple(items) for party, items in routed.items()}
