"""Inbound adapters (driving adapters).

- QuestionLoader: reads questions from a JSON file
"""

from datacastle.adapters.inbound.json_loader import QuestionFileError, QuestionLoader

__all__ = ["QuestionFileError", "QuestionLoader"]
