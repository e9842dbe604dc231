"""Domain services."""

from cas_store.domain.services.object_service import ObjectService

__all__ = [
    "ObjectService",
]
