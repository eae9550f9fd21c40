"""Domain errors for the land registry workflow core.

All exceptions inherit from LandRegistryError and carry an ``error_code``.
"""

from land_registry.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from land_registry.domain.errors.infrastructure import PersistenceTimeoutError
from land_registry.domain.errors.not_found import EntityNotFoundError
from land_registry.domain.errors.objection import WindowClosedError
from land_registry.domain.errors.review import (
    ChecklistIncompleteError,
    MissingReasonError,
)
from land_registry.domain.errors.state_transition import (
    IllegalTransitionError,
    InvalidStateError,
    RolePermissionError,
)
from land_registry.domain.errors.validation import OutOfRangeError, ValidationError

__all__: list[str] = [
    "ChecklistIncompleteError",
    "ConcurrentModificationError",
    "EntityNotFoundError",
    "IllegalTransitionError",
    "InvalidStateError",
    "MissingReasonError",
    "OutOfRangeError",
    "PersistenceTimeoutError",
    "RolePermissionError",
    "ValidationError",
    "WindowClosedError",
]
