"""Dependency injection container for CAS Store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from opentelemetry import trace
from structlog.typing import FilteringBoundLogger

from cas_store.adapters.outbound.file_blob_store import FileBlobStore
from cas_store.adapters.outbound.fingerprinting_writer import FingerprintingWriter
from cas_store.adapters.outbound.sql_metadata_index import SqlMetadataIndex
from cas_store.domain.services.object_service import ObjectService
from cas_store.infrastructure.config import Config, get_config
from cas_store.infrastructure.logging import setup_logging
from cas_store.infrastructure.metrics import CasStoreMetrics, get_metrics
from cas_store.infrastructure.tracing import setup_tracing


@dataclass
class Container:
    """Process-lifetime holder for the store's components.

    The blob store and metadata index are built exactly once here and
    handed to the object service by reference.
    """

    config: Config
    logger: FilteringBoundLogger
    tracer: trace.Tracer
    metrics: CasStoreMetrics
    blob_store: FileBlobStore
    metadata_index: SqlMetadataIndex
    object_service: ObjectService

    _instance: ClassVar[Optional["Container"]] = None

    @classmethod
    def create(
        cls,
        config: Config | None = None,
        metrics: CasStoreMetrics | None = None,
    ) -> "Container":
        """Create and initialize the container with all dependencies."""
        if cls._instance is not None:
            return cls._instance

        config = config or get_config()
        logger = setup_logging(
            level=config.observability.log_level,
            log_format=config.observability.log_format,
        )
        tracer = setup_tracing(config)
        metrics = metrics or get_metrics()

        blob_store = FileBlobStore(config.storage.data_dir)
        blob_store.initialize()

        metadata_index = SqlMetadataIndex(
            config.metadata_url,
            busy_timeout_ms=config.metadata.busy_timeout_ms,
        )
        metadata_index.initialize()

        writer = FingerprintingWriter(
            blob_store.staging_dir,
            chunk_size=config.storage.chunk_size,
            fsync=config.storage.fsync,
        )
        object_service = ObjectService(
            blob_store,
            metadata_index,
            writer=writer,
            metrics=metrics,
            tracer=tracer,
        )

        metrics.system_info.info(
            {"node_id": config.server.node_id, "data_dir": str(config.storage.data_dir)}
        )

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
            blob_store=blob_store,
            metadata_index=metadata_index,
            object_service=object_service,
        )

        logger.info(
            "cas_store_container_initialized",
            environment=config.observability.environment,
            node_id=config.server.node_id,
            data_dir=str(config.storage.data_dir),
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Dispose the current container (useful for testing)."""
        if cls._instance is not None:
            cls._instance.metadata_index.close()
        cls._instance = None


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
