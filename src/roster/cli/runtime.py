"""Wiring shared by CLI commands: config, storage, repository and tools."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import typer

from roster.cli.console import error
from roster.config import ConfigError, RosterConfig, load_config
from roster.logging import configure_logging, configure_redaction
from roster.people.repository import PeopleRepository
from roster.storage import StoragePort, create_storage
from roster.tools import (
    ToolExecutor,
    ToolRegistry,
    ToolResult,
    register_people_tools,
)


def get_config(config_path: Path | None) -> RosterConfig:
    """Load config or exit with an error message."""
    try:
        return load_config(config_path)
    except (FileNotFoundError, ConfigError) as e:
        error(str(e))
        raise typer.Exit(1) from None


def _build_registry(config: RosterConfig, storage: StoragePort) -> ToolRegistry:
    registry = ToolRegistry()
    register_people_tools(registry, PeopleRepository(storage), config.tools)
    return registry


def tool_definitions(config: RosterConfig) -> list[dict[str, Any]]:
    """Definitions of every tool. Storage is built but never opened."""
    return _build_registry(config, create_storage(config.storage)).get_definitions()


@asynccontextmanager
async def open_executor(config: RosterConfig) -> AsyncGenerator[ToolExecutor, None]:
    """Build a tool executor over the configured storage backend."""
    configure_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        retention_days=config.logging.retention_days,
    )
    configure_redaction(enabled=config.logging.redact_pii)

    storage = create_storage(config.storage)
    registry = _build_registry(config, storage)
    try:
        yield ToolExecutor(registry)
    finally:
        await storage.close()


async def run_tool(
    config: RosterConfig, tool_name: str, input_data: dict[str, Any]
) -> ToolResult:
    async with open_executor(config) as executor:
        return await executor.execute(tool_name, input_data)
