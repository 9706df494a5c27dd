"""Pytest configuration and fixtures for datacastle tests."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from datacastle.adapters.outbound.sqlite_store import SQLiteKeyValueStore
from datacastle.domain.entities import Question
from datacastle.infrastructure.config import Config, LoaderConfig, StorageConfig
from datacastle.infrastructure.logging import setup_logging
from datacastle.infrastructure.metrics import MetricsRegistry


SAMPLE_QUESTIONS = [
    {
        "category": "HISTORY",
        "air_date": "2004-12-31",
        "question": "'For the last 8 years of his life, Galileo was under house arrest for espousing this man's theory'",
        "value": "$200",
        "answer": "Copernicus",
        "round": "Jeopardy!",
        "show_number": "4680",
    },
    {
        "category": "ESPN's TOP 10 ALL-TIME ATHLETES",
        "air_date": "2004-12-31",
        "question": "'No. 2: 1912 Olympian; football star at Carlisle Indian School; 6 MLB seasons with the Reds, Giants & Braves'",
        "value": "$200",
        "answer": "Jim Thorpe",
        "round": "Jeopardy!",
        "show_number": "4680",
    },
    {
        "category": "EVERYBODY TALKS ABOUT IT...",
        "air_date": "2004-12-31",
        "question": "'The city of Yuma in this state has a record average of 4,055 hours of sunshine each year'",
        "value": "$200",
        "answer": "Arizona",
        "round": "Jeopardy!",
        "show_number": "4680",
    },
]


@pytest.fixture(autouse=True, scope="session")
def configure_logging() -> None:
    """Route log output to stderr so stdout assertions stay clean."""
    setup_logging(level="DEBUG", log_format="console")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_question_dicts() -> list[dict[str, str]]:
    """Provide the sample questions as decoded JSON objects."""
    return [dict(q) for q in SAMPLE_QUESTIONS]


@pytest.fixture
def sample_questions() -> list[Question]:
    """Provide the sample questions as entities."""
    return [Question.from_dict(q) for q in SAMPLE_QUESTIONS]


@pytest.fixture
def questions_file(temp_dir: Path) -> Path:
    """Provide a question file holding the sample questions."""
    path = temp_dir / "jeopardy_questions.json"
    path.write_text(json.dumps(SAMPLE_QUESTIONS), encoding="utf-8")
    return path


@pytest.fixture
def store(temp_dir: Path) -> Generator[SQLiteKeyValueStore, None, None]:
    """Provide an empty store in the temporary directory."""
    s = SQLiteKeyValueStore.open(temp_dir / "datacastle.db")
    yield s
    s.close()


@pytest.fixture
def test_config(temp_dir: Path, questions_file: Path) -> Config:
    """Provide a test configuration with temporary paths."""
    return Config(
        loader=LoaderConfig(questions_file=questions_file),
        storage=StorageConfig(db_path=temp_dir / "datacastle.db"),
    )


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """Provide a separate Prometheus registry to avoid conflicts between tests."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics_registry(collector_registry: CollectorRegistry) -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    return MetricsRegistry(registry=collector_registry)


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
