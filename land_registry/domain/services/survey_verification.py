"""Survey seal hashing and deed-versus-survey cross-validation.

The seal hash is a sha256 digest over a canonical JSON document of the
survey data at sealing time. Re-computing it from the stored plan and
sections detects any later change to areas or section counts.

Cross-validation reads the deed's legal description (free text such as
"Section 4 ... 120.50 m² ... participation quota 12.3456%") and compares
the stated values with the sealed survey.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from land_registry.domain.models.registry import DeedTitle, Section, SurveyPlan
from land_registry.domain.models.workflow_state import SurveyState
from land_registry.domain.services import planar

AREA_PATTERN = re.compile(r"(\d+\.?\d*)\s*m²")
QUOTA_PATTERN = re.compile(r"(\d+\.?\d*)\s*%")
SECTION_PATTERN = re.compile(r"Section\s+(\w+)")


@dataclass(frozen=True)
class CrossValidationReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def compute_seal_hash(
    plan_id: str,
    parent_parcel_area: float,
    sections: Sequence[Section],
    sealed_at: datetime,
) -> str:
    """Digest of the survey data a seal vouches for."""
    active = sorted((s for s in sections if s.is_active), key=lambda s: s.section_number)
    document = {
        "survey_plan_id": plan_id,
        "parent_parcel_area": parent_parcel_area,
        "section_count": len(active),
        "total_section_area": round(sum(s.area for s in active), 4),
        "sections": [{"section_number": s.section_number, "area": s.area} for s in active],
        "sealed_at": sealed_at.isoformat(),
    }
    canonical = json.dumps(document, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def verify_seal(plan: SurveyPlan, sections: Sequence[Section]) -> tuple[bool, str | None]:
    """Recompute the seal and compare with the stored hash.

    Returns:
        (is_valid, error message or None)
    """
    if not plan.seal_hash or plan.sealed_at is None:
        return False, "Survey plan seal hash is missing"
    expected = compute_seal_hash(
        plan.plan_id, plan.parent_parcel_area, sections, plan.sealed_at
    )
    if expected != plan.seal_hash:
        return False, "Seal hash does not match current survey data"
    return True, None


def cross_validate(
    title: DeedTitle,
    section: Section,
    survey_plan: SurveyPlan,
    survey_state: SurveyState,
    survey_sections: Sequence[Section],
    area_tolerance: float = 0.01,
    quota_tolerance: float = 0.0001,
) -> CrossValidationReport:
    """Compare a deed with the sealed survey it relies on.

    Missing values in the legal description produce warnings; values that
    disagree with the survey produce errors.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if survey_state is not SurveyState.SEALED:
        errors.append("Survey plan must be sealed before examination")

    if survey_plan.seal_hash:
        sealed, seal_error = verify_seal(survey_plan, survey_sections)
        if not sealed:
            errors.append(f"Survey seal verification failed: {seal_error}")
    else:
        errors.append("Survey plan seal hash is missing")

    if section.boundary:
        ring = planar.open_ring(section.boundary, area_tolerance)
        if len(ring) >= 3:
            geometry_area = planar.polygon_area(ring)
            if abs(geometry_area - section.area) > area_tolerance:
                errors.append(
                    f"Section geometry encloses {geometry_area:.2f} m², "
                    f"survey area is {section.area:.2f} m²"
                )

    description = title.legal_description or ""

    area_match = AREA_PATTERN.search(description)
    if area_match:
        described_area = float(area_match.group(1))
        if abs(described_area - section.area) > area_tolerance:
            errors.append(
                f"Area mismatch: Legal description has {described_area:.2f} m², "
                f"survey has {section.area:.2f} m²"
            )
    else:
        warnings.append("Area not found in legal description")

    quota_match = QUOTA_PATTERN.search(description)
    if quota_match:
        described_quota = float(quota_match.group(1))
        survey_quota = section.participation_quota or 0.0
        if abs(described_quota - survey_quota) > quota_tolerance:
            errors.append(
                f"Quota mismatch: Legal description has {described_quota:.4f}%, "
                f"survey has {survey_quota:.4f}%"
            )
    else:
        warnings.append("Participation quota not found in legal description")

    section_match = SECTION_PATTERN.search(description)
    if section_match:
        if section_match.group(1) != section.section_number:
            errors.append(
                f"Section number mismatch: Legal description has "
                f"{section_match.group(1)}, survey has {section.section_number}"
            )
    else:
        warnings.append("Section number not found in legal description")

    return CrossValidationReport(errors=tuple(errors), warnings=tuple(warnings))
