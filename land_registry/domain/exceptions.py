"""Base exception classes for the land registry domain layer."""


class LandRegistryError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class. Services
    map any LandRegistryError into a failed WorkflowResult carrying
    ``error_code``; anything else is treated as unexpected.

    Attributes:
        error_code: Stable machine-readable code for callers.
    """

    error_code: str = "LAND_REGISTRY_ERROR"

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
        self.message = message
