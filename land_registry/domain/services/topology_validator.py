"""Topology validation for survey section geometries.

Checks, in order:
1. Parent parcel boundary is a valid closed ring (when supplied).
2. Each section boundary closes (first vertex == last within tolerance),
   has at least three distinct vertices and a positive area.
3. No section boundary crosses itself.
4. Sections on the same floor level do not overlap or contain each other.
5. Sections do not extend outside the parent parcel.
6. Uncovered parcel area per floor above ``min_gap_area`` (warning).
7. Touching boundaries, when the options disallow them (warning).

The report is advisory. It never gates a state transition on its own;
the examiner and the survey compute step consume it as evidence.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from itertools import combinations

from land_registry.domain.models.geometry import (
    Coordinate,
    CorrectionSuggestion,
    ErrorLocation,
    LocationType,
    SectionGeometry,
    SuggestionPriority,
    TopologyErrorType,
    TopologyOptions,
    TopologyReport,
    TopologyViolation,
    ViolationSeverity,
)
from land_registry.domain.services import planar

_SUGGESTIONS: dict[TopologyErrorType, tuple[str, str, SuggestionPriority]] = {
    TopologyErrorType.OVERLAP: (
        "adjust_boundaries",
        "Adjust the shared boundary so the sections no longer overlap",
        SuggestionPriority.HIGH,
    ),
    TopologyErrorType.CONTAINMENT: (
        "redraw_section",
        "Redraw the section so it is neither inside another section nor "
        "outside the parent parcel",
        SuggestionPriority.HIGH,
    ),
    TopologyErrorType.INVALID_GEOMETRY: (
        "fix_geometry",
        "Close the boundary ring and ensure it has at least three distinct vertices",
        SuggestionPriority.HIGH,
    ),
    TopologyErrorType.SELF_INTERSECTION: (
        "reorder_vertices",
        "Reorder the boundary vertices so edges do not cross",
        SuggestionPriority.HIGH,
    ),
    TopologyErrorType.GAP: (
        "review_coverage",
        "Confirm the uncovered area is common property or add the missing sections",
        SuggestionPriority.MEDIUM,
    ),
    TopologyErrorType.TOUCHING_BOUNDARY: (
        "confirm_shared_boundary",
        "Confirm the sections are meant to share this boundary",
        SuggestionPriority.LOW,
    ),
}


def _suggestion(error_type: TopologyErrorType) -> CorrectionSuggestion:
    action, description, priority = _SUGGESTIONS[error_type]
    return CorrectionSuggestion(action, description, priority)


def _violation(
    error_type: TopologyErrorType,
    severity: ViolationSeverity,
    message: str,
    sections: tuple[str, ...],
    location: ErrorLocation,
    area: float | None = None,
) -> TopologyViolation:
    return TopologyViolation(
        error_type=error_type,
        severity=severity,
        message=message,
        sections=sections,
        location=location,
        suggestion=_suggestion(error_type),
        area=area,
    )


def _ring_problems(
    vertices: Sequence[Coordinate],
    label: str,
    sections: tuple[str, ...],
    tolerance: float,
) -> tuple[list[TopologyViolation], list[Coordinate] | None]:
    """Validate one boundary ring; return violations and the open ring if usable."""
    problems: list[TopologyViolation] = []
    ring = planar.open_ring(vertices, tolerance)
    distinct = {(round(p.x / tolerance), round(p.y / tolerance)) for p in ring}

    if len(distinct) < 3:
        problems.append(
            _violation(
                TopologyErrorType.INVALID_GEOMETRY,
                ViolationSeverity.ERROR,
                f"{label} has fewer than 3 distinct vertices",
                sections,
                ErrorLocation.from_coordinates(
                    tuple(vertices[:1]) or (Coordinate(0.0, 0.0),),
                    f"{label} boundary",
                ),
            )
        )
        return problems, None

    if not planar.is_closed(vertices, tolerance):
        problems.append(
            _violation(
                TopologyErrorType.INVALID_GEOMETRY,
                ViolationSeverity.ERROR,
                f"{label} boundary is not closed",
                sections,
                ErrorLocation(
                    LocationType.LINE,
                    (vertices[-1], vertices[0]),
                    "Gap between last and first vertex",
                ),
            )
        )
        return problems, None

    area = planar.polygon_area(ring)
    if area <= tolerance * tolerance:
        problems.append(
            _violation(
                TopologyErrorType.INVALID_GEOMETRY,
                ViolationSeverity.ERROR,
                f"{label} boundary encloses no area",
                sections,
                ErrorLocation.from_coordinates(tuple(ring), f"{label} boundary"),
            )
        )
        return problems, None

    for point in planar.self_intersections(ring, tolerance):
        problems.append(
            _violation(
                TopologyErrorType.SELF_INTERSECTION,
                ViolationSeverity.ERROR,
                f"{label} boundary crosses itself",
                sections,
                ErrorLocation.from_coordinates((point,), "Self-intersection point"),
            )
        )
    if problems:
        return problems, None
    return problems, ring


def _sample_points(ring: Sequence[Coordinate]) -> list[Coordinate]:
    mids = [Coordinate((a.x + b.x) / 2, (a.y + b.y) / 2) for a, b in planar.edges(ring)]
    return [*ring, *mids, planar.centroid(ring)]


def _relate_pair(
    first: SectionGeometry,
    first_ring: list[Coordinate],
    second: SectionGeometry,
    second_ring: list[Coordinate],
    options: TopologyOptions,
) -> list[TopologyViolation]:
    tol = options.tolerance
    pair = (first.section_number, second.section_number)

    crossings = [
        point
        for a, b in planar.edges(first_ring)
        for c, d in planar.edges(second_ring)
        if (point := planar.proper_intersection(a, b, c, d, tol)) is not None
    ]
    first_samples = _sample_points(first_ring)
    second_samples = _sample_points(second_ring)
    first_in_second = [p for p in first_samples if planar.strictly_inside(p, second_ring, tol)]
    second_in_first = [p for p in second_samples if planar.strictly_inside(p, first_ring, tol)]
    first_covered = all(planar.inside_or_on(p, second_ring, tol) for p in first_samples)
    second_covered = all(planar.inside_or_on(p, first_ring, tol) for p in second_samples)

    if first_covered and second_covered:
        return [
            _violation(
                TopologyErrorType.OVERLAP,
                ViolationSeverity.ERROR,
                f"Sections {pair[0]} and {pair[1]} have identical boundaries",
                pair,
                ErrorLocation.from_coordinates(tuple(first_ring), "Duplicated boundary"),
                area=planar.polygon_area(first_ring),
            )
        ]
    if first_covered and first_in_second:
        return [_containment(first, second, first_ring)]
    if second_covered and second_in_first:
        return [_containment(second, first, second_ring)]

    if crossings or first_in_second or second_in_first:
        region = [
            *crossings,
            *(p for p in first_ring if planar.inside_or_on(p, second_ring, tol)),
            *(p for p in second_ring if planar.inside_or_on(p, first_ring, tol)),
        ]
        hull = planar.convex_hull(region) or region[:1]
        area = planar.polygon_area(hull) if len(hull) >= 3 else 0.0
        return [
            _violation(
                TopologyErrorType.OVERLAP,
                ViolationSeverity.ERROR,
                f"Sections {pair[0]} and {pair[1]} overlap",
                pair,
                ErrorLocation.from_coordinates(tuple(hull), "Overlapping region"),
                area=round(area, 4),
            )
        ]

    return _touching(pair, first_ring, second_ring, options)


def _containment(
    inner: SectionGeometry,
    outer: SectionGeometry,
    inner_ring: list[Coordinate],
) -> TopologyViolation:
    return _violation(
        TopologyErrorType.CONTAINMENT,
        ViolationSeverity.ERROR,
        f"Section {inner.section_number} lies within section {outer.section_number}",
        (inner.section_number, outer.section_number),
        ErrorLocation.from_coordinates(tuple(inner_ring), "Contained section"),
        area=planar.polygon_area(inner_ring),
    )


def _touching(
    pair: tuple[str, str],
    first_ring: list[Coordinate],
    second_ring: list[Coordinate],
    options: TopologyOptions,
) -> list[TopologyViolation]:
    tol = options.tolerance
    shared = [
        stretch
        for a, b in planar.edges(first_ring)
        for c, d in planar.edges(second_ring)
        if (stretch := planar.collinear_overlap(a, b, c, d, tol)) is not None
    ]
    if shared:
        if options.allow_shared_walls:
            return []
        start, end = shared[0]
        return [
            _violation(
                TopologyErrorType.TOUCHING_BOUNDARY,
                ViolationSeverity.WARNING,
                f"Sections {pair[0]} and {pair[1]} share a boundary",
                pair,
                ErrorLocation(LocationType.LINE, (start, end), "Shared boundary"),
            )
        ]

    contacts = [p for p in first_ring if planar.on_boundary(p, second_ring, tol)]
    contacts += [p for p in second_ring if planar.on_boundary(p, first_ring, tol)]
    if contacts and not options.allow_touching:
        return [
            _violation(
                TopologyErrorType.TOUCHING_BOUNDARY,
                ViolationSeverity.WARNING,
                f"Sections {pair[0]} and {pair[1]} touch",
                pair,
                ErrorLocation.from_coordinates((contacts[0],), "Touching point"),
            )
        ]
    return []


def validate_topology(
    sections: Sequence[SectionGeometry],
    parent_boundary: Sequence[Coordinate] = (),
    options: TopologyOptions | None = None,
) -> TopologyReport:
    """Validate section geometries of one survey plan.

    Args:
        sections: Section boundaries to check.
        parent_boundary: Closed ring of the parent parcel; empty to skip
            parcel containment and gap checks.
        options: Thresholds; defaults to TopologyOptions().

    Returns:
        TopologyReport with errors and warnings, each carrying an
        ErrorLocation and a CorrectionSuggestion.
    """
    options = options or TopologyOptions()
    tol = options.tolerance
    violations: list[TopologyViolation] = []

    parent_ring: list[Coordinate] | None = None
    if parent_boundary:
        problems, parent_ring = _ring_problems(parent_boundary, "Parent parcel", (), tol)
        violations.extend(problems)

    valid: list[tuple[SectionGeometry, list[Coordinate]]] = []
    for section in sections:
        problems, ring = _ring_problems(
            section.vertices,
            f"Section {section.section_number}",
            (section.section_number,),
            tol,
        )
        violations.extend(problems)
        if ring is not None:
            valid.append((section, ring))

    for (first, first_ring), (second, second_ring) in combinations(valid, 2):
        if first.floor_level != second.floor_level:
            continue
        violations.extend(_relate_pair(first, first_ring, second, second_ring, options))

    if parent_ring is not None:
        for section, ring in valid:
            outside = [p for p in ring if not planar.inside_or_on(p, parent_ring, tol)]
            if outside:
                violations.append(
                    _violation(
                        TopologyErrorType.CONTAINMENT,
                        ViolationSeverity.ERROR,
                        f"Section {section.section_number} extends outside the "
                        "parent parcel",
                        (section.section_number,),
                        ErrorLocation.from_coordinates(
                            tuple(outside), "Vertices outside parent parcel"
                        ),
                    )
                )

        parcel_area = planar.polygon_area(parent_ring)
        covered: Counter[int] = Counter()
        for section, ring in valid:
            covered[section.floor_level] += planar.polygon_area(ring)
        for floor_level in sorted(covered):
            gap = parcel_area - covered[floor_level]
            if gap > options.min_gap_area:
                violations.append(
                    _violation(
                        TopologyErrorType.GAP,
                        ViolationSeverity.WARNING,
                        f"{gap:.2f} m² of the parent parcel is not covered by "
                        f"sections on floor {floor_level}",
                        (),
                        ErrorLocation.from_coordinates(
                            tuple(parent_ring), "Parent parcel"
                        ),
                        area=round(gap, 4),
                    )
                )

    errors = tuple(v for v in violations if v.severity is ViolationSeverity.ERROR)
    warnings = tuple(v for v in violations if v.severity is ViolationSeverity.WARNING)
    summary = Counter(v.error_type.value for v in violations)
    return TopologyReport(
        errors=errors,
        warnings=warnings,
        sections_checked=len(sections),
        summary=dict(summary),
    )
