"""Request models for amendments, transfers, disputes and objections."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from land_registry.application.dtos.registry import NewSectionInput
from land_registry.domain.models.amendment import AmendmentType
from land_registry.domain.models.dispute import (
    DisputeAuthority,
    DisputeType,
    ResolutionType,
)
from land_registry.domain.models.objection import ObjectionOutcome, ObjectionType
from land_registry.domain.models.transfer import TransferType


class AmendmentRequest(BaseModel):
    amendment_id: str = Field(min_length=1)
    scheme_id: str = Field(min_length=1)
    amendment_type: AmendmentType
    description: str = Field(min_length=1)
    affected_sections: list[str] = Field(default_factory=list)
    new_sections: list[NewSectionInput] = Field(default_factory=list)
    survey_plan_id: str | None = None


class TransferRequest(BaseModel):
    """A proposed transfer of a registered title.

    Attributes:
        consideration: Purchase price; required for sales.
        effective_date: Defaults to ``transfer_date`` when omitted.
    """

    transfer_id: str = Field(min_length=1)
    title_id: str = Field(min_length=1)
    transfer_type: TransferType
    new_holder_name: str = Field(min_length=1)
    transfer_date: date
    new_holder_id: str | None = None
    consideration: float | None = Field(default=None, ge=0)
    effective_date: date | None = None

    @model_validator(mode="after")
    def sale_has_consideration(self) -> TransferRequest:
        if self.transfer_type is TransferType.SALE and not self.consideration:
            raise ValueError("consideration is required for a sale")
        return self


class DisputeRequest(BaseModel):
    dispute_id: str = Field(min_length=1)
    dispute_type: DisputeType
    complainant_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    title_id: str | None = None
    scheme_id: str | None = None
    amendment_id: str | None = None
    respondent_name: str | None = None

    @model_validator(mode="after")
    def has_reference(self) -> DisputeRequest:
        if not (self.title_id or self.scheme_id or self.amendment_id):
            raise ValueError(
                "At least one reference (title, scheme, or amendment) must be provided"
            )
        return self


class DisputeAssignment(BaseModel):
    assignee_id: str = Field(min_length=1)
    authority: DisputeAuthority


class HearingRequest(BaseModel):
    hearing_date: datetime
    location: str = Field(min_length=1)
    officer_id: str | None = None


class DisputeResolution(BaseModel):
    resolution_type: ResolutionType
    resolution: str = Field(min_length=1)
    resolution_document_id: str | None = None


class ObjectionRequest(BaseModel):
    objection_id: str = Field(min_length=1)
    plan_id: str = Field(min_length=1)
    objection_type: ObjectionType
    objector_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    objector_contact: str | None = None


class ObjectionResolution(BaseModel):
    outcome: ObjectionOutcome
    resolution: str = Field(min_length=1)
