"""Domain value objects."""

from cas_store.domain.value_objects.digest import (
    DIGEST_ALGORITHM,
    DIGEST_HEX_LENGTH,
    Digest,
    compute_digest,
    new_hasher,
    shard_path,
    validate_digest,
)

__all__ = [
    "DIGEST_ALGORITHM",
    "DIGEST_HEX_LENGTH",
    "Digest",
    "compute_digest",
    "new_hasher",
    "shard_path",
    "validate_digest",
]
