"""Question writer and reader.

Both take the store handle explicitly; neither opens or closes it.
"""

from __future__ import annotations

import sys
from typing import Sequence, TextIO

from datacastle.domain.entities import Question, QuestionEncodeError
from datacastle.domain.value_objects import encode_key
from datacastle.infrastructure.logging import get_logger
from datacastle.infrastructure.metrics import MetricsRegistry
from datacastle.ports.outbound.key_value_store import (
    BucketCreateError,
    KeyValueStore,
    StoreError,
)

logger = get_logger(__name__)

DEFAULT_BUCKET = "questions"


class QuestionWriter:
    """Saves questions under sequential keys in a single transaction.

    Question i is stored at encode_key(i). Keys are positional, so saving
    again into a non-empty bucket overwrites keys 0..N-1 instead of
    appending.
    """

    def __init__(
        self,
        store: KeyValueStore,
        bucket: str = DEFAULT_BUCKET,
        out: TextIO | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._out = out
        self._metrics = metrics

    def save(self, questions: Sequence[Question]) -> int:
        """Save all questions or none.

        Returns:
            Number of questions committed; 0 if the transaction was rolled
            back.
        """
        saved = 0
        try:
            with self._store.update() as tx:
                try:
                    bucket = tx.create_bucket_if_not_exists(self._bucket)
                except StoreError as e:
                    raise BucketCreateError(
                        f"could not create {self._bucket} bucket"
                    ) from e

                for i, question in enumerate(questions):
                    bucket.put(encode_key(i), question.to_json_bytes())
                    saved = i + 1
        except (StoreError, QuestionEncodeError) as e:
            logger.error(
                "questions_save_failed",
                bucket=self._bucket,
                failed_at=saved,
                error=str(e),
                cause=str(e.__cause__) if e.__cause__ else None,
            )
            return 0

        logger.info("questions_saved", bucket=self._bucket, count=saved)
        if self._metrics:
            self._metrics.questions_written_total.inc(saved)
        print(f"\nSuccessfully saved {saved} questions", file=self._out or sys.stdout)
        return saved


class QuestionReader:
    """Looks up stored questions by key."""

    def __init__(
        self,
        store: KeyValueStore,
        bucket: str = DEFAULT_BUCKET,
        out: TextIO | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._out = out
        self._metrics = metrics

    def fetch(self, key: int) -> bytes | None:
        """Return the raw stored value at key.

        A missing bucket or a missing key both yield None.
        """
        with self._store.view() as tx:
            bucket = tx.bucket(self._bucket)
            value = bucket.get(encode_key(key)) if bucket is not None else None

        if self._metrics:
            self._metrics.store_lookups_total.labels(
                result="miss" if value is None else "hit"
            ).inc()
        logger.debug("question_fetched", bucket=self._bucket, key=key, found=value is not None)
        return value

    def fetch_question(self, key: int) -> Question | None:
        """Return the decoded question at key, or None if absent."""
        value = self.fetch(key)
        if value is None:
            return None
        return Question.from_json_bytes(value)

    def print_by_key(self, key: int) -> bytes | None:
        """Print the raw stored value at key.

        An absent value prints as empty text. A store error (e.g. the file
        stays locked past the timeout) is logged, nothing is printed and
        None is returned.
        """
        try:
            value = self.fetch(key)
        except StoreError as e:
            logger.error(
                "question_lookup_failed", bucket=self._bucket, key=key, error=str(e)
            )
            return None
        text = value.decode("utf-8", errors="replace") if value is not None else ""
        print(f"Question from DB: {text}", file=self._out or sys.stdout)
        return value
