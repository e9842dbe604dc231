"""Infrastructure layer - cross-cutting concerns."""

from cas_store.infrastructure.config import Config, get_config
from cas_store.infrastructure.logging import get_logger, setup_logging
from cas_store.infrastructure.metrics import CasStoreMetrics, get_metrics
from cas_store.infrastructure.tracing import get_tracer, setup_tracing

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "CasStoreMetrics",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
]
