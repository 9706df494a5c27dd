"""Application layer - use cases over the question store."""

from datacastle.application.questions import DEFAULT_BUCKET, QuestionReader, QuestionWriter
from datacastle.application.runner import run

__all__ = [
    "DEFAULT_BUCKET",
    "QuestionReader",
    "QuestionWriter",
    "run",
]
