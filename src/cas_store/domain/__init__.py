"""Domain layer - records, digests, errors and the object service."""
