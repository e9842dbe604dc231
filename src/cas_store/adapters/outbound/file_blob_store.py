"""File-based Blob Store implementation.

This adapter implements the BlobStore protocol on a local (or shared network)
filesystem.

Layout:
    <data_dir>/tmp/                      staging area for in-flight uploads
    <data_dir>/objects/<aa>/<bb>/<hash>  committed, immutable blobs

Thread Safety:
    No locks are taken. A commit either finds its destination already
    present, or promotes the staged file with a single atomic rename. Two
    writers racing on the same digest both succeed, and readers only ever
    see complete files because the content at a digest path is fixed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

from cas_store.adapters.outbound.fingerprinting_writer import discard_temp
from cas_store.domain.errors import BlobIOError, BlobNotFoundError
from cas_store.domain.value_objects.digest import shard_path
from cas_store.infrastructure.logging import get_logger
from cas_store.ports.outbound.blob_store import CommitResult

logger = get_logger(__name__)


class FileBlobStore:
    """Content-addressed blob store on a directory tree.

    Attributes:
        data_dir: Root storage directory.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self._tmp_dir = self.data_dir / "tmp"
        self._objects_dir = self.data_dir / "objects"

    @property
    def staging_dir(self) -> Path:
        return self._tmp_dir

    @property
    def objects_dir(self) -> Path:
        return self._objects_dir

    def initialize(self) -> None:
        """Create the root, staging and content directories."""
        for directory in (self.data_dir, self._tmp_dir, self._objects_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise BlobIOError(f"Failed to create directory {directory}: {exc}") from exc
        logger.info("blob_store_initialized", data_dir=str(self.data_dir))

    def path_for(self, digest: str) -> Path:
        return shard_path(self._objects_dir, digest)

    def commit(self, temp_path: Path, digest: str) -> CommitResult:
        """Promote a staged file to its addressed path.

        An already-present destination is success: the content at a digest
        path is fixed, so the staged copy is simply dropped.
        """
        try:
            final_path = self.path_for(digest)
        except ValueError:
            discard_temp(temp_path)
            raise

        if final_path.exists():
            discard_temp(temp_path)
            logger.debug("blob_deduplicated", digest=digest)
            return CommitResult(path=final_path, created=False)

        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            discard_temp(temp_path)
            raise BlobIOError(f"Failed to create shard directory for {digest}: {exc}") from exc

        try:
            os.replace(temp_path, final_path)
        except OSError as exc:
            discard_temp(temp_path)
            # A concurrent writer with identical content got there first.
            if final_path.exists():
                logger.debug("blob_commit_raced", digest=digest)
                return CommitResult(path=final_path, created=False)
            raise BlobIOError(f"Failed to commit blob {digest}: {exc}") from exc

        logger.debug("blob_committed", digest=digest, path=str(final_path))
        return CommitResult(path=final_path, created=True)

    def open(self, digest: str) -> BinaryIO:
        path = self.path_for(digest)
        try:
            return open(path, "rb")
        except FileNotFoundError as exc:
            raise BlobNotFoundError(digest) from exc
        except OSError as exc:
            raise BlobIOError(f"Failed to open blob {digest}: {exc}") from exc

    def exists(self, digest: str) -> bool:
        return self.path_for(digest).is_file()
