"""Object record entity: the logical name of a piece of stored content."""

from __future__ import annotations

from dataclasses import dataclass

from cas_store.domain.errors import InvalidObjectNameError


@dataclass(frozen=True)
class ObjectRecord:
    """A (bucket, key) name bound to a content digest.

    The (bucket, key) pair is the identity; at most one live record exists
    per pair. Records are owned by the metadata index.
    """

    bucket: str
    key: str
    digest: str
    size: int

    def get_full_path(self) -> str:
        """Get the bucket/key path."""
        return f"{self.bucket}/{self.key}"

    def to_dict(self) -> dict:
        """Listing wire shape."""
        return {
            "bucket": self.bucket,
            "key": self.key,
            "hash": self.digest,
            "size": self.size,
        }


def validate_name(bucket: str, key: str) -> None:
    """Reject empty or non-string bucket/key names.

    Raises:
        InvalidObjectNameError: If either part is unusable.
    """
    for label, value in (("bucket", bucket), ("key", key)):
        if not isinstance(value, str) or not value:
            raise InvalidObjectNameError(f"Invalid {label}: {value!r}")
