"""Domain entities for the question store.

Exports:
    Question: One Jeopardy question with seven opaque text fields.
    QuestionDecodeError: JSON input could not be decoded into questions.
    QuestionEncodeError: A question could not be serialized for storage.
"""

from datacastle.domain.entities.question import (
    Question,
    QuestionDecodeError,
    QuestionEncodeError,
)

__all__ = [
    "Question",
    "QuestionDecodeError",
    "QuestionEncodeError",
]
