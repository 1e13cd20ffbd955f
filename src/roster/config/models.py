"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from roster.config.paths import get_database_path, get_documents_path

# Hard ceiling on results a single list call may return at the tool boundary
MAX_LIST_LIMIT = 100


class ConfigError(Exception):
    """Configuration error."""

    pass


class StorageConfig(BaseModel):
    """Configuration for the storage backend.

    "sql" stores people in a relational table (SQLite by default),
    "document" stores them as JSONL document collections on disk.
    """

    backend: Literal["sql", "document"] = "sql"
    database_url: str | None = None
    database_path: Path = Field(default_factory=get_database_path)
    documents_path: Path = Field(default_factory=get_documents_path)


class ToolsConfig(BaseModel):
    """Defaults for the people tools."""

    default_list_limit: int = Field(default=20, ge=1)
    max_list_limit: int = Field(default=MAX_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT)

    @model_validator(mode="after")
    def _validate_limits(self) -> "ToolsConfig":
        if self.default_list_limit > self.max_list_limit:
            raise ValueError(
                "default_list_limit cannot exceed max_list_limit "
                f"({self.default_list_limit} > {self.max_list_limit})"
            )
        return self


class LoggingConfig(BaseModel):
    """Configuration for logging output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    log_to_file: bool = False
    retention_days: int = Field(default=7, ge=1)
    redact_pii: bool = True


class RosterConfig(BaseModel):
    """Root configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
