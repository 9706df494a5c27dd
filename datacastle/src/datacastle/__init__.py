"""
DataCastle - Jeopardy question loader

Loads a JSON array of trivia questions, persists each one into an embedded
transactional key-value store under a sequential 8-byte big-endian key, and
reads a single question back by key.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
