"""Command-line entry point.

Reads jeopardy_questions.json, saves every question into datacastle.db and
prints one question back. Takes no arguments; settings come from
DATACASTLE_* environment variables and default to those file names.
"""

from __future__ import annotations

import sys

from datacastle.adapters.inbound.json_loader import QuestionFileError
from datacastle.application.runner import run
from datacastle.infrastructure.config import Config, get_config
from datacastle.infrastructure.logging import get_logger, setup_logging
from datacastle.infrastructure.metrics import setup_metrics
from datacastle.infrastructure.tracing import setup_tracing
from datacastle.ports.outbound.key_value_store import StoreOpenError


def main(config: Config | None = None) -> int:
    """Run once and return the process exit code."""
    config = config or get_config()
    observability = config.observability

    setup_logging(observability.log_level, observability.log_format)
    logger = get_logger(__name__)

    metrics = setup_metrics(observability.metrics_port)
    if observability.otel_endpoint:
        setup_tracing(observability.otel_service_name, observability.otel_endpoint)

    try:
        run(config, out=sys.stdout, metrics=metrics)
    except (StoreOpenError, QuestionFileError) as e:
        sys.stdout.flush()
        logger.critical("fatal", error=str(e), error_type=type(e).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
