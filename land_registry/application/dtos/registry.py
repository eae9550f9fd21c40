"""Request models for schemes, sections and survey plans.

Inbound data is validated here and converted to domain records; services
only ever see the frozen dataclasses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from land_registry.domain.models.amendment import NewSectionSpec
from land_registry.domain.models.geometry import Coordinate
from land_registry.domain.models.registry import DeedTitle, Scheme, Section, SurveyPlan


class CoordinateModel(BaseModel):
    """Planar coordinate in metres."""

    x: float
    y: float

    def to_domain(self) -> Coordinate:
        return Coordinate(self.x, self.y)


def _ring(points: list[CoordinateModel]) -> tuple[Coordinate, ...]:
    return tuple(p.to_domain() for p in points)


class SectionInput(BaseModel):
    """A section as submitted with a scheme.

    Attributes:
        section_number: Number unique within the scheme.
        area: Floor area in square metres.
        floor_level: Storey of the section.
        section_type: Usage; "common" sections carry no quota.
        boundary: Optional boundary ring.
    """

    section_number: str = Field(min_length=1, max_length=32)
    area: float = Field(description="Floor area in square metres")
    floor_level: int = 0
    section_type: str = Field(default="residential", min_length=1)
    owner_id: str | None = None
    boundary: list[CoordinateModel] = Field(default_factory=list)

    @field_validator("section_number")
    @classmethod
    def strip_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("section_number must not be blank")
        return v

    def to_domain(self, scheme_id: str) -> Section:
        return Section(
            scheme_id=scheme_id,
            section_number=self.section_number,
            area=self.area,
            floor_level=self.floor_level,
            section_type=self.section_type,
            owner_id=self.owner_id,
            boundary=_ring(self.boundary),
        )


class NewSectionInput(BaseModel):
    """A section an amendment will create."""

    section_number: str = Field(min_length=1, max_length=32)
    area: float = Field(ge=0)
    floor_level: int = 0
    section_type: str = "residential"
    boundary: list[CoordinateModel] = Field(default_factory=list)

    def to_domain(self) -> NewSectionSpec:
        return NewSectionSpec(
            section_number=self.section_number.strip(),
            area=self.area,
            floor_level=self.floor_level,
            section_type=self.section_type,
            boundary=_ring(self.boundary),
        )


class SchemeSubmission(BaseModel):
    """A new sectional scheme and its sections."""

    scheme_id: str = Field(min_length=1)
    scheme_number: str = Field(min_length=1)
    planner_id: str = Field(min_length=1)
    parent_parcel_area: float | None = Field(default=None, gt=0)
    common_property_area: float | None = Field(default=None, ge=0)
    sections: list[SectionInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_section_numbers(self) -> SchemeSubmission:
        numbers = [s.section_number for s in self.sections]
        duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate section numbers: {', '.join(duplicates)}")
        return self

    def to_domain(self) -> tuple[Scheme, list[Section]]:
        scheme = Scheme(
            scheme_id=self.scheme_id,
            scheme_number=self.scheme_number,
            planner_id=self.planner_id,
            parent_parcel_area=self.parent_parcel_area,
            common_property_area=self.common_property_area,
        )
        return scheme, [s.to_domain(self.scheme_id) for s in self.sections]


class SurveyPlanSubmission(BaseModel):
    plan_id: str = Field(min_length=1)
    scheme_id: str = Field(min_length=1)
    surveyor_id: str = Field(min_length=1)
    parent_parcel_area: float = Field(gt=0)
    parent_boundary: list[CoordinateModel] = Field(default_factory=list)
    section_boundaries: dict[str, list[CoordinateModel]] = Field(default_factory=dict)

    def to_domain(self) -> SurveyPlan:
        return SurveyPlan(
            plan_id=self.plan_id,
            scheme_id=self.scheme_id,
            surveyor_id=self.surveyor_id,
            parent_parcel_area=self.parent_parcel_area,
            parent_boundary=_ring(self.parent_boundary),
        )

    def boundaries(self) -> dict[str, tuple[Coordinate, ...]]:
        return {number: _ring(ring) for number, ring in self.section_boundaries.items()}


class TitleSubmission(BaseModel):
    title_id: str = Field(min_length=1)
    scheme_id: str = Field(min_length=1)
    section_number: str = Field(min_length=1)
    conveyancer_id: str = Field(min_length=1)
    holder_name: str = Field(min_length=1)
    survey_plan_id: str | None = None
    holder_id: str | None = None
    legal_description: str = ""
    has_active_mortgage: bool = False

    def to_domain(self) -> DeedTitle:
        return DeedTitle(
            title_id=self.title_id,
            scheme_id=self.scheme_id,
            section_number=self.section_number,
            survey_plan_id=self.survey_plan_id,
            conveyancer_id=self.conveyancer_id,
            legal_description=self.legal_description,
            holder_name=self.holder_name.strip(),
            holder_id=self.holder_id,
            has_active_mortgage=self.has_active_mortgage,
        )
