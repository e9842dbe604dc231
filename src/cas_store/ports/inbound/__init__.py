"""Inbound ports - API contracts for the object store.

Inbound ports define the interface that the HTTP layer and other callers
use to store and resolve named content.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol

from cas_store.domain.entities.object_record import ObjectRecord


# =============================================================================
# Object Service Port
# =============================================================================


@dataclass
class ObjectServiceStats:
    """Statistics for object service monitoring."""

    total_objects: int
    distinct_blobs: int
    total_size_bytes: int
    buckets: int


class ObjectServicePort(Protocol):
    """Protocol for named-object operations over content-addressed storage.

    Thread Safety:
        All methods must be thread-safe. Concurrent puts to the same
        (bucket, key) resolve as last writer wins.

    Integrity:
        Every blob is stored under the SHA-256 of its bytes. A record whose
        blob has gone missing is reported as an integrity violation, never
        as an ordinary not-found.

    Example:
        digest = service.put_object("test", "hello.txt", stream)
        with service.get_object("test", "hello.txt") as body:
            data = body.read()
    """

    @abstractmethod
    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> str:
        """Store the stream's bytes under (bucket, key).

        Args:
            bucket: Bucket name.
            key: Object key.
            stream: Readable binary stream or iterable of byte chunks.

        Returns:
            Hex digest of the stored content (usable as an ETag).

        Raises:
            BlobIOError: If staging or committing the blob fails.
            MetadataIndexError: If the record cannot be written.
        """
        ...

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> BinaryIO:
        """Open the content stored under (bucket, key).

        Raises:
            ObjectNotFoundError: If no record exists.
            IntegrityViolationError: If the record's blob is missing.
        """
        ...

    @abstractmethod
    def head_object(self, bucket: str, key: str) -> ObjectRecord:
        """Return size and digest without touching the blob.

        Raises:
            ObjectNotFoundError: If no record exists.
        """
        ...

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Remove the record for (bucket, key); the blob is retained.

        Raises:
            ObjectNotFoundError: If no record existed.
        """
        ...

    @abstractmethod
    def list_objects(self, bucket: Optional[str] = None) -> list[ObjectRecord]:
        """List records ordered by (bucket, key).

        Args:
            bucket: Restrict to this bucket when given.
        """
        ...

    @abstractmethod
    def open_blob(self, digest: str) -> BinaryIO:
        """Open a blob directly by digest.

        Raises:
            BlobNotFoundError: If no blob exists for digest.
        """
        ...

    @abstractmethod
    def get_stats(self) -> ObjectServiceStats:
        """Get object service statistics."""
        ...


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "ObjectServicePort",
    "ObjectServiceStats",
]
