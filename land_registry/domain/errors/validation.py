"""Input validation errors.

Raised when caller-supplied data is malformed or out of range. A
validation failure never changes state.
"""

from __future__ import annotations

from collections.abc import Sequence

from land_registry.domain.exceptions import LandRegistryError


class ValidationError(LandRegistryError):
    """Raised when request data fails business-rule validation.

    Attributes:
        errors: Every individual validation message collected.
        warnings: Non-blocking observations gathered before the failure.
        field: Name of the offending field, when a single field is at fault.
    """

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        errors: Sequence[str] | None = None,
        warnings: Sequence[str] | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Summary of the failure.
            errors: Individual messages; defaults to ``[message]``.
            warnings: Warnings collected alongside the errors.
            field: Offending field name (optional).
        """
        self.errors = list(errors) if errors else [message]
        self.warnings = list(warnings or [])
        self.field = field
        super().__init__(message)


class OutOfRangeError(ValidationError):
    """Raised when a numeric value falls outside its permitted interval.

    Attributes:
        value: The rejected value.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.
    """

    error_code = "OUT_OF_RANGE"

    def __init__(
        self,
        field: str,
        value: float,
        minimum: float,
        maximum: float,
    ) -> None:
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"{field} must be between {minimum:g} and {maximum:g}, got {value:g}",
            field=field,
        )
