"""OpenTelemetry tracing for the load, save and lookup steps.

Spans are always created through the global tracer provider. Until
setup_tracing() installs an exporting provider they are no-ops.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


_tracer: trace.Tracer | None = None


def setup_tracing(service_name: str, otlp_endpoint: str) -> trace.Tracer:
    """
    Export spans to an OTLP collector.

    Args:
        service_name: Reported as service.name
        otlp_endpoint: Collector gRPC endpoint, e.g. "http://localhost:4317"

    Returns:
        Tracer bound to the new provider
    """
    global _tracer

    from datacastle import __version__

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": service_name, "service.version": __version__}
        )
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(service_name)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the configured tracer, falling back to the global provider."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("datacastle")
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the block inside a span carrying the given attributes."""
    with get_tracer().start_as_current_span(name, attributes=attributes) as span:
        yield span
