"""Error taxonomy for the content-addressable store.

Every failure surfaced by the store derives from CasStoreError so callers can
catch the whole family at one seam. The two "missing" conditions are kept
apart on purpose:

- ObjectNotFoundError: no metadata record exists for (bucket, key).
- IntegrityViolationError: a record exists but its blob is gone, which means
  the blob tree was modified out of band.
"""

from __future__ import annotations


class CasStoreError(Exception):
    """Base class for all store errors."""
    pass


class ObjectNotFoundError(CasStoreError):
    """No metadata record for the requested (bucket, key)."""

    def __init__(self, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object not found: {bucket}/{key}")


class IntegrityViolationError(CasStoreError):
    """A metadata record references a blob that cannot be read."""

    def __init__(self, bucket: str, key: str, digest: str) -> None:
        self.bucket = bucket
        self.key = key
        self.digest = digest
        super().__init__(
            f"Integrity violation: {bucket}/{key} references missing blob {digest}"
        )


class BlobNotFoundError(CasStoreError):
    """No blob stored under the requested digest."""

    def __init__(self, digest: str) -> None:
        self.digest = digest
        super().__init__(f"Blob not found: {digest}")


class BlobIOError(CasStoreError, OSError):
    """Staging write, rename, or blob read failed at the filesystem boundary."""
    pass


class MetadataIndexError(CasStoreError):
    """The metadata index failed to read or write."""
    pass


class InvalidDigestError(CasStoreError, ValueError):
    """A string is not a 64-character lowercase hex SHA-256 digest."""
    pass


class InvalidObjectNameError(CasStoreError, ValueError):
    """Bucket or key is empty or not a string."""
    pass
