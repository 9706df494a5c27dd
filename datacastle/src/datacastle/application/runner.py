"""Load, save and look up questions.

Usage:
    from datacastle.application import run
    from datacastle.infrastructure.config import Config

    run(Config())

Each step runs once, in order. The store is opened before loading and is
closed on every exit path.
"""

from __future__ import annotations

import sys
from typing import TextIO

from datacastle.adapters.inbound.json_loader import QuestionLoader
from datacastle.adapters.outbound.sqlite_store import SQLiteKeyValueStore
from datacastle.application.questions import QuestionReader, QuestionWriter
from datacastle.infrastructure.config import Config
from datacastle.infrastructure.logging import get_logger
from datacastle.infrastructure.metrics import MetricsRegistry
from datacastle.infrastructure.tracing import trace_span

logger = get_logger(__name__)


def run(
    config: Config,
    out: TextIO | None = None,
    metrics: MetricsRegistry | None = None,
) -> int:
    """Run the loader, the writer and the reader against one store.

    Args:
        config: Paths, bucket name, lock timeout and lookup key.
        out: Stream for program output (stdout if None).
        metrics: Optional metrics registry.

    Returns:
        Number of questions saved.

    Raises:
        StoreOpenError: If the store cannot be opened.
        QuestionFileError: If the question file cannot be read.
    """
    out = out or sys.stdout
    storage = config.storage

    with SQLiteKeyValueStore.open(
        storage.db_path,
        timeout=storage.open_timeout_seconds,
        mode=storage.file_mode,
        metrics=metrics,
    ) as store:
        with trace_span("questions.load", {"path": str(config.loader.questions_file)}):
            questions = QuestionLoader(config.loader.questions_file, metrics=metrics).load()

        out.write(f"Questions={len(questions)}")

        with trace_span("questions.save", {"bucket": storage.bucket, "count": len(questions)}):
            saved = QuestionWriter(store, storage.bucket, out=out, metrics=metrics).save(questions)

        with trace_span("questions.lookup", {"bucket": storage.bucket, "key": config.lookup.key}):
            QuestionReader(store, storage.bucket, out=out, metrics=metrics).print_by_key(
                config.lookup.key
            )

    logger.debug("run_finished", loaded=len(questions), saved=saved)
    return saved
