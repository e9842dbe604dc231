"""Fingerprinting writer: stage an upload while hashing it.

Bytes are copied from the source into a uniquely named file in the staging
directory and fed to a SHA-256 accumulator in the same pass, so the digest
is known the moment the stream is exhausted. The temporary name is a random
UUID, never a digest, so concurrent uploads of identical content never share
a staging file.

Failure Handling:
    Any failure mid-stream removes the temporary file before the error
    propagates. Nothing partial is ever handed to the blob store.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Iterator

from cas_store.domain.errors import BlobIOError
from cas_store.domain.value_objects.digest import Digest, new_hasher
from cas_store.infrastructure.logging import get_logger
from cas_store.ports.outbound.blob_store import Source, StagedBlob

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def discard_temp(temp_path: Path) -> None:
    """Best-effort removal of a staging file."""
    try:
        temp_path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("temp_cleanup_failed", path=str(temp_path), error=str(exc))


class FingerprintingWriter:
    """Streams a source into the staging directory and computes its digest.

    Attributes:
        staging_dir: Directory receiving temporary files.
        chunk_size: Bytes requested per read from file-like sources.
    """

    def __init__(
        self,
        staging_dir: str | Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        fsync: bool = True,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.staging_dir = Path(staging_dir)
        self.chunk_size = chunk_size
        self._fsync = fsync

    def write(self, source: Source) -> StagedBlob:
        """Copy source into a fresh temporary file.

        Args:
            source: A readable binary stream, a bytes object, or an iterable
                of byte chunks.

        Returns:
            The staged file with its digest and byte count.

        Raises:
            BlobIOError: If the temporary file cannot be written or the
                source fails with an OSError.
        """
        temp_path = self.staging_dir / uuid.uuid4().hex
        hasher = new_hasher()
        size = 0

        try:
            with open(temp_path, "xb") as f:
                for chunk in self._iter_chunks(source):
                    if not chunk:
                        continue
                    f.write(chunk)
                    hasher.update(chunk)
                    size += len(chunk)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
        except OSError as exc:
            discard_temp(temp_path)
            raise BlobIOError(f"Failed to stage upload: {exc}") from exc
        except BaseException:
            discard_temp(temp_path)
            raise

        digest = Digest(hasher.hexdigest())
        logger.debug("upload_staged", temp_path=str(temp_path), digest=digest, size=size)
        return StagedBlob(temp_path=temp_path, digest=digest, size=size)

    def _iter_chunks(self, source: Source) -> Iterator[bytes]:
        if isinstance(source, (bytes, bytearray, memoryview)):
            yield bytes(source)
            return

        read = getattr(source, "read", None)
        if read is not None:
            while True:
                chunk = read(self.chunk_size)
                if not chunk:
                    return
                yield chunk
        else:
            for chunk in source:
                yield chunk
