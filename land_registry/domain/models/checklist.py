"""Review and examination checklists.

Each checklist item is either required or optional. An approval decision
is only legal once every required item is complete. Deed examination
items additionally carry the severity of the defect raised when the item
is left incomplete.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from land_registry.domain.models.defect import DefectSeverity


@dataclass(frozen=True)
class ChecklistItem:
    """One checklist line.

    Attributes:
        item_id: Stable identifier (e.g. ``legal-3``).
        category: Grouping (compliance, technical, legal, survey, ...).
        description: Text shown to the reviewer.
        required: Whether approval depends on this item.
        completed: Whether the reviewer has ticked the item.
        defect_severity: Severity of the defect raised when incomplete.
        notes: Reviewer notes, reused as the defect description.
    """

    item_id: str
    category: str
    description: str
    required: bool = True
    completed: bool = False
    defect_severity: DefectSeverity | None = None
    notes: str | None = None

    def mark(self, completed: bool = True, notes: str | None = None) -> ChecklistItem:
        return replace(self, completed=completed, notes=notes or self.notes)


def complete_items(
    checklist: Iterable[ChecklistItem],
    item_ids: Iterable[str],
) -> tuple[ChecklistItem, ...]:
    """Return a copy of the checklist with the given items marked complete."""
    wanted = set(item_ids)
    return tuple(item.mark() if item.item_id in wanted else item for item in checklist)


def complete_all(checklist: Iterable[ChecklistItem]) -> tuple[ChecklistItem, ...]:
    return tuple(item.mark() for item in checklist)


def merge_checklist(
    base: Iterable[ChecklistItem],
    updates: Iterable[ChecklistItem],
) -> tuple[ChecklistItem, ...]:
    """Apply a reviewer's ticks and notes onto the base checklist.

    Only ``completed`` and ``notes`` are taken from an update; the base
    item keeps its description, ``required`` flag and defect severity.
    Base items missing from ``updates`` are returned unchanged, so a
    required item can never be dropped from the checklist.

    Raises:
        ValueError: If an update names an item not in ``base``.
    """
    items = tuple(base)
    by_id = {update.item_id: update for update in updates}
    unknown = sorted(set(by_id) - {item.item_id for item in items})
    if unknown:
        raise ValueError(f"Unknown checklist items: {', '.join(unknown)}")
    return tuple(
        item.mark(by_id[item.item_id].completed, by_id[item.item_id].notes)
        if item.item_id in by_id
        else item
        for item in items
    )


_E = DefectSeverity.ERROR
_W = DefectSeverity.WARNING

PLANNING_REVIEW_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem("compliance-1", "compliance", "Scheme complies with zoning regulations"),
    ChecklistItem("compliance-2", "compliance", "Required documents are complete and valid"),
    ChecklistItem(
        "compliance-3",
        "compliance",
        "Environmental impact assessment completed (if required)",
        required=False,
    ),
    ChecklistItem("technical-1", "technical", "Site plan is accurate and legible"),
    ChecklistItem("technical-2", "technical", "Boundary coordinates are properly defined"),
    ChecklistItem(
        "technical-3", "technical", "Number of sections matches planning application"
    ),
    ChecklistItem("technical-4", "technical", "Proposed areas are reasonable and consistent"),
    ChecklistItem("legal-1", "legal", "Planner registration is valid"),
    ChecklistItem("legal-2", "legal", "Land ownership/rights are properly documented"),
    ChecklistItem(
        "legal-3", "legal", "No outstanding disputes or encumbrances", required=False
    ),
    ChecklistItem(
        "spatial-1", "spatial", "Scheme boundaries do not overlap with existing parcels"
    ),
    ChecklistItem("spatial-2", "spatial", "Scheme is contained within parent land boundary"),
    ChecklistItem(
        "spatial-3", "spatial", "Access roads and infrastructure are properly planned"
    ),
)

SURVEY_REVIEW_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem("geo-1", "geometry", "Parent parcel geometry is valid and closed"),
    ChecklistItem("geo-2", "geometry", "All section geometries are valid polygons"),
    ChecklistItem("geo-3", "geometry", "No overlaps between sections"),
    ChecklistItem("geo-4", "geometry", "All sections contained within parent parcel"),
    ChecklistItem("geo-5", "geometry", "No significant gaps in coverage", required=False),
    ChecklistItem("geo-6", "geometry", "Control points are properly established"),
    ChecklistItem(
        "comp-1", "compliance", "Survey accuracy meets required standards (1:10,000)"
    ),
    ChecklistItem("comp-2", "compliance", "Participation quotas sum to exactly 100%"),
    ChecklistItem("comp-3", "compliance", "Area calculations are consistent"),
    ChecklistItem("comp-4", "compliance", "Scheme plan conforms to SG standards"),
    ChecklistItem("doc-1", "documentation", "Survey plan includes all required sheets"),
    ChecklistItem("doc-2", "documentation", "Area schedule is complete and accurate"),
    ChecklistItem("doc-3", "documentation", "Section diagrams are properly labeled"),
    ChecklistItem("doc-4", "documentation", "Scale and north arrow are present"),
    ChecklistItem("doc-5", "documentation", "Notes and disclaimers are included"),
    ChecklistItem("legal-1", "legal", "Planning plan approval is valid"),
    ChecklistItem("legal-2", "legal", "Surveyor registration is current"),
    ChecklistItem("legal-3", "legal", "No legal restrictions prevent sealing"),
)

DEED_EXAMINATION_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem("legal-1", "legal", "Legal description matches sealed survey data", defect_severity=_E),
    ChecklistItem("legal-2", "legal", "Section number matches survey section", defect_severity=_E),
    ChecklistItem("legal-3", "legal", "Area in legal description matches survey area", defect_severity=_E),
    ChecklistItem("legal-4", "legal", "Participation quota matches survey quota", defect_severity=_E),
    ChecklistItem("legal-5", "legal", "Rights and conditions are properly stated", defect_severity=_E),
    ChecklistItem("legal-6", "legal", "Restrictions comply with Sectional Titles Act", defect_severity=_E),
    ChecklistItem("survey-1", "survey", "Survey plan is sealed and valid", defect_severity=_E),
    ChecklistItem("survey-2", "survey", "Survey seal hash is valid", defect_severity=_E),
    ChecklistItem("survey-3", "survey", "Section geometry matches survey geometry", defect_severity=_E),
    ChecklistItem("survey-4", "survey", "Scheme plan is available and referenced", defect_severity=_E),
    ChecklistItem("holder-1", "holder", "Holder name is complete and accurate", defect_severity=_E),
    ChecklistItem("holder-2", "holder", "Holder ID number is provided and valid", defect_severity=_E),
    ChecklistItem("holder-3", "holder", "Holder type is correctly specified", defect_severity=_E),
    ChecklistItem(
        "holder-4",
        "holder",
        "Holder contact information is provided",
        required=False,
        defect_severity=_W,
    ),
    ChecklistItem("doc-1", "documentation", "All required documents are attached", defect_severity=_E),
    ChecklistItem("doc-2", "documentation", "Conveyancer signature is present", defect_severity=_E),
    ChecklistItem(
        "doc-3",
        "documentation",
        "Supporting documents are properly formatted",
        required=False,
        defect_severity=_W,
    ),
    ChecklistItem("tenure-1", "tenure", "Complies with communal tenure regulations", defect_severity=_E),
    ChecklistItem("tenure-2", "tenure", "No conflicts with existing land rights", defect_severity=_E),
    ChecklistItem(
        "tenure-3",
        "tenure",
        "Transfer restrictions are properly documented",
        required=False,
        defect_severity=_W,
    ),
)
