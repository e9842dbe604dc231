"""Object service: named objects over content-addressed blobs.

Write path:  fingerprinting writer -> blob store commit -> index upsert
Read path:   index lookup -> blob store open
Delete:      index remove only; blobs are never deleted

Ordering is the consistency model. The blob is committed before its record
is upserted, so every record points at a blob that exists. A crash in
between leaves an orphaned blob, which is harmless. Overwrites and deletes
leave the old blob in place; there is no reference counting.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, BinaryIO, Generator, Optional

from opentelemetry import trace

from cas_store.domain.entities.object_record import ObjectRecord, validate_name
from cas_store.domain.errors import (
    BlobNotFoundError,
    CasStoreError,
    IntegrityViolationError,
)
from cas_store.domain.value_objects.digest import validate_digest
from cas_store.infrastructure.logging import get_logger
from cas_store.infrastructure.metrics import CasStoreMetrics, get_metrics
from cas_store.ports.inbound import ObjectServiceStats
from cas_store.ports.outbound.blob_store import BlobStore, Source, StagingWriter
from cas_store.ports.outbound.metadata_index import MetadataIndex

logger = get_logger(__name__)


class ObjectService:
    """Orchestrates put/get/head/delete/list over a blob store and an index."""

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_index: MetadataIndex,
        writer: StagingWriter,
        metrics: CasStoreMetrics | None = None,
        tracer: trace.Tracer | None = None,
    ) -> None:
        """Initialize the object service.

        Args:
            blob_store: Content-addressed blob storage.
            metadata_index: (bucket, key) -> (digest, size) index.
            writer: Streams uploads into the blob store's staging directory.
            metrics: Metrics collector (defaults to the process singleton).
            tracer: OpenTelemetry tracer (defaults to the global provider's).
        """
        self._blob_store = blob_store
        self._index = metadata_index
        self._writer = writer
        self._metrics = metrics or get_metrics()
        self._tracer = tracer or trace.get_tracer("cas_store")

    @contextmanager
    def _operation(self, operation: str, **attributes: Any) -> Generator[trace.Span, None, None]:
        span_attributes = {k: v for k, v in attributes.items() if v is not None}
        start = time.perf_counter()
        with self._tracer.start_as_current_span(
            f"object.{operation}", attributes=span_attributes
        ) as span:
            try:
                yield span
            except CasStoreError as exc:
                self._metrics.request_errors.labels(
                    operation=operation, error_type=type(exc).__name__
                ).inc()
                raise
            finally:
                self._metrics.operation_latency.labels(operation=operation).observe(
                    time.perf_counter() - start
                )

    def put_object(self, bucket: str, key: str, stream: Source) -> str:
        """Store stream under (bucket, key) and return its digest.

        Overwriting an existing pair replaces its digest and size in one
        upsert. The previously referenced blob stays on disk.
        """
        validate_name(bucket, key)
        with self._operation("put", bucket=bucket, key=key) as span:
            staged = self._writer.write(stream)
            result = self._blob_store.commit(staged.temp_path, staged.digest)
            self._index.upsert(bucket, key, staged.digest, staged.size)

            span.set_attribute("digest", staged.digest)
            span.set_attribute("size", staged.size)
            self._metrics.objects_put.labels(bucket=bucket).inc()
            self._metrics.bytes_uploaded.labels(bucket=bucket).inc(staged.size)
            if result.created:
                self._metrics.blobs_created.inc()
            else:
                self._metrics.blobs_deduplicated.inc()
                self._metrics.dedup_bytes_saved.inc(staged.size)

            logger.info(
                "object_put",
                bucket=bucket,
                key=key,
                digest=staged.digest,
                size=staged.size,
                deduplicated=not result.created,
            )
            return staged.digest

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        """Open the content of (bucket, key).

        A record whose blob is missing is an integrity violation: the blob
        tree was changed behind the store's back. It is reported apart from
        an ordinary not-found so it shows up in logs and metrics.
        """
        validate_name(bucket, key)
        with self._operation("get", bucket=bucket, key=key):
            record = self._index.lookup(bucket, key)
            try:
                body = self._blob_store.open(record.digest)
            except BlobNotFoundError as exc:
                self._metrics.integrity_errors.labels(error_type="blob_missing").inc()
                logger.error(
                    "object_integrity_violation",
                    bucket=bucket,
                    key=key,
                    digest=record.digest,
                )
                raise IntegrityViolationError(bucket, key, record.digest) from exc

            self._metrics.objects_read.labels(bucket=bucket).inc()
            self._metrics.bytes_downloaded.labels(bucket=bucket).inc(record.size)
            logger.debug("object_get", bucket=bucket, key=key, digest=record.digest)
            return body

    def head_object(self, bucket: str, key: str) -> ObjectRecord:
        validate_name(bucket, key)
        with self._operation("head", bucket=bucket, key=key):
            return self._index.lookup(bucket, key)

    def delete_object(self, bucket: str, key: str) -> None:
        """Remove the record for (bucket, key). The blob is retained."""
        validate_name(bucket, key)
        with self._operation("delete", bucket=bucket, key=key):
            self._index.remove(bucket, key)
            self._metrics.objects_deleted.labels(bucket=bucket).inc()
            logger.info("object_deleted", bucket=bucket, key=key)

    def list_objects(self, bucket: Optional[str] = None) -> list[ObjectRecord]:
        with self._operation("list", bucket=bucket):
            return self._index.list(bucket)

    def open_blob(self, digest: str) -> BinaryIO:
        """Open a blob by digest, independent of any record."""
        digest = validate_digest(digest)
        with self._operation("open_blob", digest=digest):
            return self._blob_store.open(digest)

    def get_stats(self) -> ObjectServiceStats:
        records = self._index.list()
        return ObjectServiceStats(
            total_objects=len(records),
            distinct_blobs=len({r.digest for r in records}),
            total_size_bytes=sum(r.size for r in records),
            buckets=len({r.bucket for r in records}),
        )
