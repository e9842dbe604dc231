"""Prometheus metrics for CAS Store."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info


class CasStoreMetrics:
    """Metrics collector for the object store and dispatcher."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY
        registry = self._registry

        # Object Operations
        self.objects_put = Counter(
            "cas_store_objects_put_total",
            "Total objects written",
            ["bucket"],
            registry=registry,
        )
        self.objects_read = Counter(
            "cas_store_objects_read_total",
            "Total objects read",
            ["bucket"],
            registry=registry,
        )
        self.objects_deleted = Counter(
            "cas_store_objects_deleted_total",
            "Total object records deleted",
            ["bucket"],
            registry=registry,
        )
        self.bytes_uploaded = Counter(
            "cas_store_bytes_uploaded_total",
            "Total bytes received by put",
            ["bucket"],
            registry=registry,
        )
        self.bytes_downloaded = Counter(
            "cas_store_bytes_downloaded_total",
            "Total bytes served by get",
            ["bucket"],
            registry=registry,
        )

        # Blob Metrics
        self.blobs_created = Counter(
            "cas_store_blobs_created_total",
            "Total new blobs committed to the content tree",
            registry=registry,
        )
        self.blobs_deduplicated = Counter(
            "cas_store_blobs_deduplicated_total",
            "Total puts whose content was already stored",
            registry=registry,
        )
        self.dedup_bytes_saved = Counter(
            "cas_store_dedup_bytes_saved_total",
            "Total bytes not stored again thanks to deduplication",
            registry=registry,
        )

        # Error Metrics
        self.request_errors = Counter(
            "cas_store_request_errors_total",
            "Total request errors",
            ["operation", "error_type"],
            registry=registry,
        )
        self.integrity_errors = Counter(
            "cas_store_integrity_errors_total",
            "Records whose blob was missing or unreadable",
            ["error_type"],
            registry=registry,
        )

        # API Latency
        self.operation_latency = Histogram(
            "cas_store_operation_latency_seconds",
            "Object service operation latency",
            ["operation"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
            registry=registry,
        )

        # Dispatcher
        self.dispatch_requests = Counter(
            "cas_store_dispatch_requests_total",
            "Requests forwarded by the round-robin dispatcher",
            ["backend", "status"],
            registry=registry,
        )

        # System Info
        self.system_info = Info(
            "cas_store",
            "CAS store system information",
            registry=registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Registry the collectors are attached to."""
        return self._registry


_metrics: CasStoreMetrics | None = None


def get_metrics() -> CasStoreMetrics:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = CasStoreMetrics()
    return _metrics
