"""Outbound ports - interfaces for storage dependencies.

Outbound ports define contracts for the durable stores the object service
depends on: blob storage and the metadata index.
"""

from cas_store.ports.outbound.blob_store import (
    BlobStore,
    CommitResult,
    Source,
    StagedBlob,
    StagingWriter,
)
from cas_store.ports.outbound.metadata_index import MetadataIndex

__all__ = [
    "BlobStore",
    "CommitResult",
    "MetadataIndex",
    "Source",
    "StagedBlob",
    "StagingWriter",
]
