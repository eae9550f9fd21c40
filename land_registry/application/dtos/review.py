"""Request models for review and examination decisions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from land_registry.domain.models.checklist import ChecklistItem
from land_registry.domain.models.defect import DefectSeverity, ExaminationDefect


class ChecklistItemUpdate(BaseModel):
    """Completion state of one checklist item, by id."""

    item_id: str = Field(min_length=1)
    completed: bool = True
    notes: str | None = None


class DefectInput(BaseModel):
    """A defect raised by an examiner."""

    title: str = Field(min_length=1)
    description: str = ""
    severity: DefectSeverity = DefectSeverity.ERROR
    category: str = "legal"
    checklist_item_id: str | None = None
    section_id: str | None = None
    suggested_correction: str | None = None
    defect_id: str = Field(default_factory=lambda: str(uuid4()))

    def to_domain(self) -> ExaminationDefect:
        return ExaminationDefect(
            defect_id=self.defect_id,
            title=self.title,
            description=self.description,
            severity=self.severity,
            category=self.category,
            checklist_item_id=self.checklist_item_id,
            section_id=self.section_id,
            suggested_correction=self.suggested_correction,
        )


class DecisionRequest(BaseModel):
    """A reviewer's decision with the checklist as they left it.

    ``checklist`` lists item updates applied on top of the base checklist
    the service supplies; items not mentioned keep their state.
    """

    decision: Literal["approve", "reject", "request_revision"]
    notes: str | None = None
    checklist: list[ChecklistItemUpdate] | None = None
    defects: list[DefectInput] = Field(default_factory=list)

    def apply_checklist(
        self, base: Sequence[ChecklistItem]
    ) -> tuple[ChecklistItem, ...] | None:
        """Merge the updates into ``base``; None when no checklist was sent.

        Raises:
            ValueError: If an update names an item not in ``base``.
        """
        if self.checklist is None:
            return None
        updates = {u.item_id: u for u in self.checklist}
        unknown = sorted(set(updates) - {item.item_id for item in base})
        if unknown:
            raise ValueError(f"Unknown checklist items: {', '.join(unknown)}")
        return tuple(
            item.mark(updates[item.item_id].completed, updates[item.item_id].notes)
            if item.item_id in updates
            else item
            for item in base
        )

    def domain_defects(self) -> list[ExaminationDefect]:
        return [d.to_domain() for d in self.defects]
