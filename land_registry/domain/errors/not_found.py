"""Lookup errors."""

from land_registry.domain.exceptions import LandRegistryError


class EntityNotFoundError(LandRegistryError):
    """Raised when a referenced record does not exist.

    Attributes:
        entity_type: Kind of record (scheme, title, amendment, ...).
        entity_id: Identifier that was looked up.
    """

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")
