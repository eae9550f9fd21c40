"""Errors raised at the boundary with external collaborators."""

from land_registry.domain.exceptions import LandRegistryError


class PersistenceTimeoutError(LandRegistryError):
    """Raised when a persistence call exceeds its time budget.

    The workflow core does not retry; the caller decides.

    Attributes:
        operation: Port operation that timed out.
        timeout_seconds: Budget that was exceeded.
    """

    error_code = "PERSISTENCE_TIMEOUT"

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Persistence operation '{operation}' timed out after {timeout_seconds}s"
        )
