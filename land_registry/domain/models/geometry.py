"""Planar geometry value objects and topology report types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Coordinate:
    """A projected coordinate in metres."""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class SectionGeometry:
    """Boundary of one section as a closed ring.

    Attributes:
        section_number: Section the boundary belongs to.
        vertices: Ring vertices; the first vertex is repeated at the end.
        floor_level: Storey the section is on; overlaps only matter per level.
    """

    section_number: str
    vertices: tuple[Coordinate, ...]
    floor_level: int = 0


class TopologyErrorType(Enum):
    OVERLAP = "overlap"
    GAP = "gap"
    CONTAINMENT = "containment"
    INVALID_GEOMETRY = "invalid_geometry"
    TOUCHING_BOUNDARY = "touching_boundary"
    SELF_INTERSECTION = "self_intersection"


class LocationType(Enum):
    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"


class ViolationSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


class SuggestionPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ErrorLocation:
    """Where a topology violation sits, for downstream visualisation.

    A single coordinate is a POINT; several coordinates describe a POLYGON
    (or a LINE when explicitly typed so).
    """

    location_type: LocationType
    coordinates: tuple[Coordinate, ...]
    description: str

    @classmethod
    def from_coordinates(
        cls, coordinates: tuple[Coordinate, ...], description: str
    ) -> ErrorLocation:
        location_type = LocationType.POINT if len(coordinates) == 1 else LocationType.POLYGON
        return cls(location_type, coordinates, description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.location_type.value,
            "coordinates": [c.to_dict() for c in self.coordinates],
            "description": self.description,
        }


@dataclass(frozen=True)
class CorrectionSuggestion:
    action: str
    description: str
    priority: SuggestionPriority

    def to_dict(self) -> dict[str, str]:
        return {
            "action": self.action,
            "description": self.description,
            "priority": self.priority.value,
        }


@dataclass(frozen=True)
class TopologyViolation:
    """One topology finding.

    Attributes:
        error_type: Kind of violation.
        severity: ERROR or WARNING.
        message: Human-readable description.
        sections: Section numbers involved (empty for parcel-level findings).
        location: Where the violation is.
        suggestion: How to correct it.
        area: Affected area in square metres, where meaningful.
    """

    error_type: TopologyErrorType
    severity: ViolationSeverity
    message: str
    sections: tuple[str, ...]
    location: ErrorLocation
    suggestion: CorrectionSuggestion
    area: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.error_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "sections": list(self.sections),
            "location": self.location.to_dict(),
            "suggestion": self.suggestion.to_dict(),
            "area": self.area,
        }


@dataclass(frozen=True)
class TopologyOptions:
    """Tunable thresholds for topology validation.

    Attributes:
        tolerance: Distance under which two points are considered equal (m).
        min_gap_area: Uncovered area below which no gap is reported (m²).
        allow_touching: Report sections that touch at a point only as OK.
        allow_shared_walls: Report sections sharing an edge as OK.
    """

    tolerance: float = 0.01
    min_gap_area: float = 1.0
    allow_touching: bool = True
    allow_shared_walls: bool = True


@dataclass(frozen=True)
class TopologyReport:
    """Advisory topology report; never gates a transition by itself."""

    errors: tuple[TopologyViolation, ...] = ()
    warnings: tuple[TopologyViolation, ...] = ()
    sections_checked: int = 0
    summary: dict[str, int] = field(default_factory=dict, hash=False)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [v.to_dict() for v in self.errors],
            "warnings": [v.to_dict() for v in self.warnings],
            "sections_checked": self.sections_checked,
            "summary": dict(self.summary),
        }
