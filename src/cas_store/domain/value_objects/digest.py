"""Content digests and the sharded path layout derived from them.

A digest is the lowercase hex SHA-256 of a blob. Blobs live at
``<root>/<aa>/<bb>/<digest>`` where ``aa`` and ``bb`` are the first and
second pairs of hex characters. Two levels of 256-way fan-out keep any one
directory small even with millions of blobs.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import NewType

from cas_store.domain.errors import InvalidDigestError

Digest = NewType("Digest", str)

DIGEST_ALGORITHM = "sha256"
DIGEST_HEX_LENGTH = 64
SHARD_WIDTH = 2

_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


def validate_digest(value: str) -> Digest:
    """Return value as a Digest, or raise InvalidDigestError."""
    if not isinstance(value, str) or not _DIGEST_RE.match(value):
        raise InvalidDigestError(f"Invalid digest: {value!r}")
    return Digest(value)


def new_hasher() -> "hashlib._Hash":
    """Create an incremental hasher for the store's digest algorithm."""
    return hashlib.new(DIGEST_ALGORITHM)


def compute_digest(data: bytes) -> Digest:
    """Digest of an in-memory byte string."""
    return Digest(hashlib.sha256(data).hexdigest())


def shard_path(root: Path, digest: str) -> Path:
    """Map a digest to its addressed location under root.

    Args:
        root: Root of the content tree.
        digest: Hex digest of the blob.

    Returns:
        ``root / digest[0:2] / digest[2:4] / digest``.

    Raises:
        InvalidDigestError: If digest is malformed.
    """
    digest = validate_digest(digest)
    first = digest[:SHARD_WIDTH]
    second = digest[SHARD_WIDTH:SHARD_WIDTH * 2]
    return Path(root) / first / second / digest
