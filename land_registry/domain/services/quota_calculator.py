"""Participation quota calculation.

quota_i = area_i / total_area * 100, rounded half-up to ``precision``
decimal places. Arithmetic runs on Decimal so the rounded quotas can be
made to sum to exactly 100: any rounding residual is added to the
section holding the largest quota (first one on ties). Sections of type
``common`` hold no quota.

All functions are pure and safe to call concurrently.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from land_registry.domain.errors.validation import OutOfRangeError, ValidationError
from land_registry.domain.models.registry import COMMON_SECTION_TYPE

HUNDRED = Decimal(100)
DEFAULT_PRECISION = 4
DEFAULT_TOLERANCE = 0.01


@dataclass(frozen=True)
class SectionArea:
    """Input to quota calculation."""

    section_number: str
    area: float
    section_type: str = "residential"


@dataclass(frozen=True)
class SectionQuota:
    """Calculated quota for one section.

    Attributes:
        section_number: Section the quota is for.
        area: Section area (m²).
        participation_quota: Percentage share in [0, 100].
        common_area_share: Square metres of common property, 2 decimals.
    """

    section_number: str
    area: float
    participation_quota: float
    common_area_share: float


@dataclass(frozen=True)
class QuotaCalculation:
    """Result of a quota calculation or adjustment.

    Attributes:
        quotas: One entry per eligible section, in input order.
        total_area: Sum of eligible section areas.
        total_quota: Sum of quotas (100 on success).
        errors: Blocking problems; ``quotas`` is empty when present.
        warnings: Non-blocking observations.
        adjusted_section: Section that absorbed a rounding residual.
        residual: Amount added to ``adjusted_section``.
    """

    quotas: tuple[SectionQuota, ...] = ()
    total_area: float = 0.0
    total_quota: float = 0.0
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    adjusted_section: str | None = None
    residual: float = 0.0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def quota_map(self) -> dict[str, float]:
        return {q.section_number: q.participation_quota for q in self.quotas}


@dataclass(frozen=True)
class QuotaSumCheck:
    total: float
    difference: float
    is_valid: bool


def _quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-precision)


def round_half_up(value: Decimal, precision: int) -> Decimal:
    """Round away from zero at .5, matching conventional rounding."""
    return value.quantize(_quantum(precision), rounding=ROUND_HALF_UP)


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def allocate_residual(
    quotas: list[Decimal],
    target_total: Decimal,
) -> tuple[list[Decimal], int | None, Decimal]:
    """Move ``target_total - sum(quotas)`` onto the largest quota.

    Ties resolve to the first index, so the result is deterministic for a
    given input order.

    Returns:
        (adjusted quotas, index that absorbed the residual or None, residual)
    """
    residual = target_total - sum(quotas, Decimal(0))
    if residual == 0 or not quotas:
        return quotas, None, Decimal(0)
    index = max(range(len(quotas)), key=lambda i: quotas[i])
    adjusted = list(quotas)
    adjusted[index] += residual
    return adjusted, index, residual


def _common_share(quota: Decimal, common_property_area: float) -> float:
    return float(round_half_up(quota / HUNDRED * _dec(common_property_area), 2))


def _build(
    numbers: Sequence[str],
    areas: Sequence[float],
    quotas: Sequence[Decimal],
    common_property_area: float,
) -> tuple[SectionQuota, ...]:
    return tuple(
        SectionQuota(
            section_number=number,
            area=area,
            participation_quota=float(quota),
            common_area_share=_common_share(quota, common_property_area),
        )
        for number, area, quota in zip(numbers, areas, quotas, strict=True)
    )


def calculate_participation_quotas(
    sections: Iterable[SectionArea],
    common_property_area: float = 0.0,
    precision: int = DEFAULT_PRECISION,
) -> QuotaCalculation:
    """Calculate quotas proportional to section area.

    Args:
        sections: Sections of the scheme; common sections are skipped.
        common_property_area: Common property (m²) to apportion.
        precision: Decimal places of each quota.

    Returns:
        QuotaCalculation. Negative areas or a zero total produce errors
        and no quotas; zero-area sections produce warnings.
    """
    eligible = [s for s in sections if s.section_type != COMMON_SECTION_TYPE]
    errors: list[str] = []
    warnings: list[str] = []

    if not eligible:
        return QuotaCalculation(errors=("No sections available for quota calculation",))

    for section in eligible:
        if section.area < 0:
            errors.append(f"Section {section.section_number} has negative area")
        elif section.area == 0:
            warnings.append(f"Section {section.section_number} has zero area")
    if errors:
        return QuotaCalculation(errors=tuple(errors), warnings=tuple(warnings))

    total = sum((_dec(s.area) for s in eligible), Decimal(0))
    if total <= 0:
        return QuotaCalculation(
            errors=("Total section area must be greater than zero",),
            warnings=tuple(warnings),
        )

    raw = [round_half_up(_dec(s.area) / total * HUNDRED, precision) for s in eligible]
    quotas, index, residual = allocate_residual(raw, HUNDRED)
    adjusted_section = None
    if index is not None:
        adjusted_section = eligible[index].section_number
        warnings.append(
            f"Quota for section {adjusted_section} adjusted by {residual} "
            "to ensure total equals 100%"
        )

    return QuotaCalculation(
        quotas=_build(
            [s.section_number for s in eligible],
            [s.area for s in eligible],
            quotas,
            common_property_area,
        ),
        total_area=float(total),
        total_quota=float(sum(quotas, Decimal(0))),
        warnings=tuple(warnings),
        adjusted_section=adjusted_section,
        residual=float(residual),
    )


def adjust_quota(
    current: Sequence[SectionQuota],
    section_number: str,
    new_quota: float,
    common_property_area: float = 0.0,
    precision: int = DEFAULT_PRECISION,
) -> QuotaCalculation:
    """Pin one section's quota and redistribute the rest by area.

    The other sections share ``100 - new_quota`` in proportion to their
    areas, with the rounding residual going to the largest of them.

    Raises:
        OutOfRangeError: If ``new_quota`` is outside [0, 100].
        ValidationError: If the section is unknown, or the remaining
            sections cannot absorb the remaining quota.
    """
    if not 0 <= new_quota <= 100:
        raise OutOfRangeError("participation_quota", new_quota, 0, 100)

    numbers = [q.section_number for q in current]
    if section_number not in numbers:
        raise ValidationError(
            f"Section {section_number} not found in scheme", field="section_number"
        )

    pinned = round_half_up(_dec(new_quota), precision)
    remaining = HUNDRED - pinned
    others = [q for q in current if q.section_number != section_number]

    if not others:
        if remaining != 0:
            raise ValidationError(
                "A scheme with a single section must assign it a quota of 100",
                field="participation_quota",
            )
        redistributed: list[Decimal] = []
        index, residual = None, Decimal(0)
    else:
        others_area = sum((_dec(q.area) for q in others), Decimal(0))
        if others_area <= 0:
            if remaining != 0:
                raise ValidationError(
                    "Remaining sections have no area to share the remaining quota"
                )
            redistributed = [Decimal(0) for _ in others]
            index, residual = None, Decimal(0)
        else:
            raw = [
                round_half_up(_dec(q.area) / others_area * remaining, precision)
                for q in others
            ]
            redistributed, index, residual = allocate_residual(raw, remaining)

    warnings: list[str] = []
    adjusted_section = None
    if index is not None:
        adjusted_section = others[index].section_number
        warnings.append(
            f"Quota for section {adjusted_section} adjusted by {residual} "
            "to ensure total equals 100%"
        )

    by_number = dict(zip((q.section_number for q in others), redistributed, strict=True))
    by_number[section_number] = pinned
    ordered = [by_number[n] for n in numbers]

    return QuotaCalculation(
        quotas=_build(numbers, [q.area for q in current], ordered, common_property_area),
        total_area=float(sum((_dec(q.area) for q in current), Decimal(0))),
        total_quota=float(sum(ordered, Decimal(0))),
        warnings=tuple(warnings),
        adjusted_section=adjusted_section,
        residual=float(residual),
    )


def validate_quota_sum(
    quotas: Iterable[float],
    tolerance: float = DEFAULT_TOLERANCE,
) -> QuotaSumCheck:
    """Check that quotas sum to 100 within ``tolerance``."""
    total = float(sum((_dec(q) for q in quotas), Decimal(0)))
    difference = total - 100.0
    return QuotaSumCheck(
        total=total,
        difference=difference,
        is_valid=abs(difference) <= tolerance,
    )
