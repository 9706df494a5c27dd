"""Prometheus metrics for the question loader."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all question loader metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Loader metrics
        self.questions_loaded_total = Counter(
            "datacastle_questions_loaded_total",
            "Total number of questions read from the input file",
            registry=self._registry,
        )

        self.load_errors_total = Counter(
            "datacastle_load_errors_total",
            "Total number of failed loads",
            ["kind"],  # read, decode
            registry=self._registry,
        )

        # Store metrics
        self.questions_written_total = Counter(
            "datacastle_questions_written_total",
            "Total number of questions committed to the store",
            registry=self._registry,
        )

        self.store_transactions_total = Counter(
            "datacastle_store_transactions_total",
            "Total number of store transactions",
            ["kind", "status"],  # kind: update, view; status: commit, rollback
            registry=self._registry,
        )

        self.store_lookups_total = Counter(
            "datacastle_store_lookups_total",
            "Total number of key lookups",
            ["result"],  # hit, miss
            registry=self._registry,
        )

        # Build info
        self.info = Info(
            "datacastle",
            "Question loader information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(
    port: int | None = None, registry: CollectorRegistry | None = None
) -> MetricsRegistry:
    """
    Set up Prometheus metrics.

    Args:
        port: Port for the metrics HTTP server. No server is started if None.
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    if _metrics is None or registry is not None:
        _metrics = MetricsRegistry(registry)

    # Set build info
    from datacastle import __version__
    _metrics.info.info({
        "version": __version__,
    })

    # Start HTTP server for Prometheus scraping
    if port is not None:
        start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
