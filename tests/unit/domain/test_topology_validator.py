"""Unit tests for section topology validation."""

from __future__ import annotations

import pytest

from land_registry.domain.models.geometry import (
    Coordinate,
    LocationType,
    SectionGeometry,
    SuggestionPriority,
    TopologyErrorType,
    TopologyOptions,
)
from land_registry.domain.services.topology_validator import validate_topology
from tests.helpers.builders import square


def _section(number: str, vertices: tuple[Coordinate, ...], floor: int = 0) -> SectionGeometry:
    return SectionGeometry(number, vertices, floor)


def _types(violations: tuple) -> list[TopologyErrorType]:
    return [v.error_type for v in violations]


class TestValidGeometry:
    def test_adjacent_sections_sharing_a_wall(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(10, 0, 10))]
        )

        assert report.is_valid
        assert report.errors == ()
        assert report.warnings == ()
        assert report.sections_checked == 2

    def test_empty_input_is_valid(self) -> None:
        report = validate_topology([])

        assert report.is_valid
        assert report.sections_checked == 0

    def test_overlap_on_different_floors_is_allowed(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10), 0), _section("2", square(5, 5, 10), 1)]
        )

        assert report.is_valid


class TestInvalidRings:
    def test_unclosed_ring(self) -> None:
        open_vertices = square(0, 0, 10)[:-1]

        report = validate_topology([_section("1", open_vertices)])

        assert _types(report.errors) == [TopologyErrorType.INVALID_GEOMETRY]
        assert "not closed" in report.errors[0].message
        assert report.errors[0].location.location_type is LocationType.LINE

    def test_too_few_vertices(self) -> None:
        degenerate = (Coordinate(0, 0), Coordinate(5, 5), Coordinate(0, 0))

        report = validate_topology([_section("1", degenerate)])

        assert _types(report.errors) == [TopologyErrorType.INVALID_GEOMETRY]
        assert "fewer than 3 distinct vertices" in report.errors[0].message

    def test_collinear_ring_has_no_area(self) -> None:
        flat = (Coordinate(0, 0), Coordinate(5, 0), Coordinate(10, 0), Coordinate(0, 0))

        report = validate_topology([_section("1", flat)])

        assert "encloses no area" in report.errors[0].message

    def test_self_intersection(self) -> None:
        bow_tie = (
            Coordinate(0, 0),
            Coordinate(10, 10),
            Coordinate(10, 0),
            Coordinate(0, 20),
            Coordinate(0, 0),
        )

        report = validate_topology([_section("1", bow_tie)])

        assert _types(report.errors) == [TopologyErrorType.SELF_INTERSECTION]
        point = report.errors[0].location.coordinates[0]
        assert point.x == pytest.approx(20 / 3)
        assert point.y == pytest.approx(20 / 3)

    def test_invalid_section_is_excluded_from_pair_checks(self) -> None:
        report = validate_topology(
            [
                _section("1", square(0, 0, 10)[:-1]),
                _section("2", square(0, 0, 10)),
            ]
        )

        assert _types(report.errors) == [TopologyErrorType.INVALID_GEOMETRY]


class TestPairRelations:
    def test_partial_overlap(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(5, 5, 10))]
        )

        assert not report.is_valid
        overlap = report.errors[0]
        assert overlap.error_type is TopologyErrorType.OVERLAP
        assert overlap.sections == ("1", "2")
        assert overlap.area == pytest.approx(25.0)
        assert overlap.suggestion.action == "adjust_boundaries"
        assert overlap.suggestion.priority is SuggestionPriority.HIGH

    def test_identical_boundaries(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(0, 0, 10))]
        )

        assert _types(report.errors) == [TopologyErrorType.OVERLAP]
        assert "identical boundaries" in report.errors[0].message

    def test_section_inside_another(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(2, 2, 3))]
        )

        assert _types(report.errors) == [TopologyErrorType.CONTAINMENT]
        assert report.errors[0].message == "Section 2 lies within section 1"
        assert report.errors[0].area == pytest.approx(9.0)

    def test_shared_wall_warns_when_disallowed(self) -> None:
        options = TopologyOptions(allow_shared_walls=False)

        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(10, 0, 10))],
            options=options,
        )

        assert report.is_valid
        assert _types(report.warnings) == [TopologyErrorType.TOUCHING_BOUNDARY]
        assert report.warnings[0].location.location_type is LocationType.LINE

    def test_corner_touch_warns_when_disallowed(self) -> None:
        sections = [_section("1", square(0, 0, 10)), _section("2", square(10, 10, 10))]

        assert validate_topology(sections).warnings == ()
        report = validate_topology(sections, options=TopologyOptions(allow_touching=False))

        assert _types(report.warnings) == [TopologyErrorType.TOUCHING_BOUNDARY]
        assert report.warnings[0].location.coordinates == (Coordinate(10, 10),)


class TestParentParcel:
    def test_section_outside_parent(self) -> None:
        report = validate_topology(
            [_section("1", square(15, 15, 10))],
            parent_boundary=square(0, 0, 20),
        )

        containment = [
            v for v in report.errors if v.error_type is TopologyErrorType.CONTAINMENT
        ]
        assert len(containment) == 1
        assert "extends outside the parent parcel" in containment[0].message

    def test_uncovered_area_is_a_gap_warning(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(10, 0, 10))],
            parent_boundary=square(0, 0, 20),
        )

        assert report.is_valid
        assert _types(report.warnings) == [TopologyErrorType.GAP]
        assert report.warnings[0].area == pytest.approx(200.0)
        assert report.summary == {"gap": 1}

    def test_small_gap_is_ignored(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10))],
            parent_boundary=square(0, 0, 10.04),
        )

        assert report.warnings == ()

    def test_invalid_parent_boundary(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10))],
            parent_boundary=square(0, 0, 20)[:-1],
        )

        assert "Parent parcel boundary is not closed" in [v.message for v in report.errors]


class TestReportSerialisation:
    def test_to_dict_shape(self) -> None:
        report = validate_topology(
            [_section("1", square(0, 0, 10)), _section("2", square(5, 5, 10))]
        )

        data = report.to_dict()

        assert data["is_valid"] is False
        assert data["sections_checked"] == 2
        error = data["errors"][0]
        assert error["type"] == "overlap"
        assert error["severity"] == "error"
        assert error["location"]["type"] == "polygon"
        assert error["suggestion"]["priority"] == "high"
