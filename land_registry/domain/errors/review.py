"""Decision precondition errors for review and examination."""

from __future__ import annotations

from collections.abc import Sequence

from land_registry.domain.exceptions import LandRegistryError


class ChecklistIncompleteError(LandRegistryError):
    """Raised when approval is attempted with required checklist items open.

    Attributes:
        missing_items: Text of every required item not yet completed.
    """

    error_code = "CHECKLIST_INCOMPLETE"

    def __init__(self, missing_items: Sequence[str]) -> None:
        self.missing_items = list(missing_items)
        super().__init__(
            "Cannot approve: required checklist items are incomplete: "
            + "; ".join(self.missing_items)
        )


class MissingReasonError(LandRegistryError):
    """Raised when a reject or revision decision arrives without notes.

    Attributes:
        decision: The decision that requires a reason.
    """

    error_code = "MISSING_REASON"

    def __init__(self, decision: str) -> None:
        self.decision = decision
        super().__init__(f"A reason is required for decision '{decision}'")
