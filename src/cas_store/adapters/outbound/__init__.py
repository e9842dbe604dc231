"""Outbound adapters - implementations of outbound ports.

These adapters implement the storage dependencies: staging uploads on disk,
the content-addressed blob tree, and the SQL metadata index.
"""

from cas_store.adapters.outbound.file_blob_store import FileBlobStore
from cas_store.adapters.outbound.fingerprinting_writer import FingerprintingWriter
from cas_store.adapters.outbound.sql_metadata_index import SqlMetadataIndex

__all__ = [
    "FileBlobStore",
    "FingerprintingWriter",
    "SqlMetadataIndex",
]
