"""OpenTelemetry tracing configuration for CAS Store."""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from cas_store import __version__
from cas_store.infrastructure.config import Config, get_config


def setup_tracing(config: Config | None = None) -> trace.Tracer:
    """Configure OpenTelemetry tracing for the store."""
    config = config or get_config()

    resource = Resource.create(
        {
            "service.name": "cas_store",
            "service.version": __version__,
            "service.instance.id": config.server.node_id,
            "deployment.environment": config.observability.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.observability.otel_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.observability.otel_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)

    return trace.get_tracer("cas_store")


def get_tracer(name: str = "cas_store") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)
