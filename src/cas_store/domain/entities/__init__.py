"""Domain entities."""

from cas_store.domain.entities.object_record import ObjectRecord, validate_name

__all__ = [
    "ObjectRecord",
    "validate_name",
]
