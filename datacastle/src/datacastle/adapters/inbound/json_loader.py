"""JSON question file loader.

Reads the whole input file and decodes it as a JSON array of questions.
Read failures are fatal and raised to the caller. Decode failures are
logged and produce an empty list so the caller can carry on with zero
questions.
"""

from __future__ import annotations

from pathlib import Path

from datacastle.domain.entities import Question, QuestionDecodeError
from datacastle.infrastructure.logging import get_logger
from datacastle.infrastructure.metrics import MetricsRegistry

logger = get_logger(__name__)


class QuestionFileError(Exception):
    """Raised when the question file cannot be opened or read."""


class QuestionLoader:
    """Loads questions from a JSON file.

    Attributes:
        path: Path of the JSON file.
    """

    def __init__(
        self,
        path: str | Path = "jeopardy_questions.json",
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._path = Path(path)
        self._metrics = metrics

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> bytes:
        """Read the raw file contents.

        Raises:
            QuestionFileError: If the file cannot be opened or read.
        """
        try:
            with open(self._path, "rb") as f:
                return f.read()
        except OSError as e:
            if self._metrics:
                self._metrics.load_errors_total.labels(kind="read").inc()
            raise QuestionFileError(f"could not read {self._path}: {e}") from e

    def load(self) -> list[Question]:
        """Load all questions in file order.

        Returns:
            The decoded questions, or an empty list if the file is not a
            valid JSON array of questions.

        Raises:
            QuestionFileError: If the file cannot be opened or read.
        """
        body = self.read()

        try:
            questions = Question.list_from_json(body)
        except QuestionDecodeError as e:
            logger.error("questions_decode_failed", path=str(self._path), error=str(e))
            if self._metrics:
                self._metrics.load_errors_total.labels(kind="decode").inc()
            return []

        logger.info("questions_loaded", path=str(self._path), count=len(questions))
        if self._metrics:
            self._metrics.questions_loaded_total.inc(len(questions))
        return questions
