"""Blob Store port for content-addressed byte storage.

This outbound port defines the contract for durable blob storage keyed by
digest. The store never modifies or deletes a blob once committed.

The blob store is responsible for:
- Staging incoming bytes under collision-free temporary names
- Promoting staged files to their addressed path atomically
- Opening committed blobs for reading
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Protocol, Union

Source = Union[BinaryIO, bytes, Iterable[bytes]]


@dataclass(frozen=True)
class StagedBlob:
    """A fully written temporary file and the fingerprint of its bytes."""

    temp_path: Path
    digest: str
    size: int


@dataclass(frozen=True)
class CommitResult:
    """Outcome of promoting a staged blob."""

    path: Path
    created: bool  # False when an identical blob was already in place


class StagingWriter(Protocol):
    """Protocol for streaming an upload into the staging directory.

    Implementations hash the bytes as they are written and never leave a
    partial file behind when the source fails.
    """

    @abstractmethod
    def write(self, source: Source) -> StagedBlob:
        """Copy source into a uniquely named staging file.

        Raises:
            BlobIOError: If the staging file cannot be written.
        """
        ...


class BlobStore(Protocol):
    """Protocol for content-addressed blob storage.

    Thread Safety:
        Implementations must tolerate concurrent commits of the same digest.
        Content addressing guarantees identical bytes, so a commit that
        finds its destination already present succeeds without writing.
    """

    @property
    @abstractmethod
    def staging_dir(self) -> Path:
        """Directory where the fingerprinting writer places temporary files."""
        ...

    @abstractmethod
    def initialize(self) -> None:
        """Create the staging and content directories if missing.

        Raises:
            BlobIOError: If the directories cannot be created.
        """
        ...

    @abstractmethod
    def path_for(self, digest: str) -> Path:
        """Return the addressed path for a digest.

        Raises:
            InvalidDigestError: If digest is malformed.
        """
        ...

    @abstractmethod
    def commit(self, temp_path: Path, digest: str) -> CommitResult:
        """Atomically move a staged file to its addressed path.

        Args:
            temp_path: Fully written temporary file.
            digest: Digest of the temporary file's bytes.

        Returns:
            The final path and whether a new blob was created.

        Raises:
            BlobIOError: If shard directories or the move fail. The temp
                file is removed on a best-effort basis first.
        """
        ...

    @abstractmethod
    def open(self, digest: str) -> BinaryIO:
        """Open a committed blob for reading.

        Raises:
            BlobNotFoundError: If no blob exists for digest.
            BlobIOError: If the blob exists but cannot be opened.
        """
        ...

    @abstractmethod
    def exists(self, digest: str) -> bool:
        """Check whether a blob is stored for digest."""
        ...
