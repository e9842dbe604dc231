"""Metadata Index port mapping (bucket, key) to (digest, size).

The index is the single owner of object records. Every operation is a
single indivisible call against the backing store; in particular upsert
must never leave a row combining one writer's digest with another's size.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol

from cas_store.domain.entities.object_record import ObjectRecord


class MetadataIndex(Protocol):
    """Protocol for the durable object record index.

    Thread Safety:
        All methods must be safe to call concurrently. Concurrent upserts
        to the same pair resolve as last writer wins.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Create the backing schema if it does not exist.

        Raises:
            MetadataIndexError: If the schema cannot be created.
        """
        ...

    @abstractmethod
    def upsert(self, bucket: str, key: str, digest: str, size: int) -> None:
        """Insert or replace the record for (bucket, key) atomically.

        Raises:
            MetadataIndexError: If the write fails.
        """
        ...

    @abstractmethod
    def lookup(self, bucket: str, key: str) -> ObjectRecord:
        """Fetch the record for (bucket, key).

        Raises:
            ObjectNotFoundError: If no record exists.
            MetadataIndexError: If the read fails.
        """
        ...

    @abstractmethod
    def remove(self, bucket: str, key: str) -> None:
        """Delete the record for (bucket, key).

        Raises:
            ObjectNotFoundError: If no record existed.
            MetadataIndexError: If the write fails.
        """
        ...

    @abstractmethod
    def list(self, bucket: Optional[str] = None) -> list[ObjectRecord]:
        """Snapshot of records ordered by (bucket, key).

        Args:
            bucket: Restrict to this bucket when given.

        Raises:
            MetadataIndexError: If the read fails.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release connections held by the index."""
        ...
