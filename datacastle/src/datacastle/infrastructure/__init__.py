"""Infrastructure layer - cross-cutting concerns."""

from datacastle.infrastructure.config import Config, get_config
from datacastle.infrastructure.logging import setup_logging, get_logger
from datacastle.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from datacastle.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
