"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: APIs offered to clients (ObjectServicePort)
- Outbound ports: Dependencies on storage (BlobStore, MetadataIndex)

Adapters implement these ports with concrete functionality.
"""

from cas_store.ports.inbound import ObjectServicePort, ObjectServiceStats
from cas_store.ports.outbound import BlobStore, CommitResult, MetadataIndex, StagedBlob

__all__ = [
    # Inbound ports
    "ObjectServicePort",
    "ObjectServiceStats",
    # Outbound ports
    "BlobStore",
    "CommitResult",
    "MetadataIndex",
    "StagedBlob",
]
