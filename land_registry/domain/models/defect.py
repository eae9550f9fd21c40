"""Examination defects and the parties responsible for correcting them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DefectSeverity(Enum):
    """How a defect affects the decision.

    ERROR defects block approval; WARNING and INFO do not.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class CorrectionParty(Enum):
    """External party a defect is routed to for correction."""

    PLANNER = "planner"
    SURVEYOR = "surveyor"
    CONVEYANCER = "conveyancer"


@dataclass(frozen=True)
class ExaminationDefect:
    """A problem found during review or examination.

    Attributes:
        defect_id: Stable identifier (``defect-<checklist item>`` when generated).
        title: Short summary.
        description: Detail shown to the correcting party.
        severity: ERROR, WARNING or INFO.
        category: Checklist category or free-form area (legal, survey, ...).
        checklist_item_id: Checklist item that produced the defect, if any.
        section_id: Section the defect concerns, if any.
        suggested_correction: What the party should do.
    """

    defect_id: str
    title: str
    description: str
    severity: DefectSeverity
    category: str
    checklist_item_id: str | None = None
    section_id: str | None = None
    suggested_correction: str | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity is DefectSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "defect_id": self.defect_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "category": self.category,
            "checklist_item_id": self.checklist_item_id,
            "section_id": self.section_id,
            "suggested_correction": self.suggested_correction,
        }
