"""Configuration management for the question loader."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderConfig(BaseModel):
    """Input file configuration."""

    questions_file: Path = Field(
        default=Path("jeopardy_questions.json"), description="JSON array of questions"
    )


class StorageConfig(BaseModel):
    """Key-value store configuration."""

    db_path: Path = Field(default=Path("datacastle.db"), description="Store file path")
    bucket: str = Field(default="questions", min_length=1, description="Bucket holding questions")
    open_timeout_seconds: float = Field(
        default=1.0, gt=0, description="How long to wait for a lock held by another process"
    )
    file_mode: int = Field(
        default=0o600, ge=0, le=0o777, description="Permissions for a newly created store file"
    )


class LookupConfig(BaseModel):
    """Lookup performed after the questions are saved."""

    key: int = Field(default=1, ge=0, lt=2**64, description="Record key to print")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="console", description="Log format")
    metrics_port: int | None = Field(
        default=None, ge=1, le=65535, description="Prometheus metrics port (disabled if unset)"
    )
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="datacastle", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the question loader."""

    model_config = SettingsConfigDict(
        env_prefix="DATACASTLE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    lookup: LookupConfig = Field(default_factory=LookupConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
