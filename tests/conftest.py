"""Shared test fixtures and factories."""

import logging
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from roster.config.models import RosterConfig, StorageConfig
from roster.config.paths import ENV_VAR, get_roster_home
from roster.db.engine import Database
from roster.logging import configure_redaction
from roster.people.repository import PeopleRepository
from roster.storage.base import StoragePort
from roster.storage.document import DocumentStorage
from roster.storage.sql import SQLStorage
from roster.tools.executor import ToolExecutor
from roster.tools.people import register_people_tools
from roster.tools.registry import ToolRegistry

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def roster_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Point ROSTER_HOME at a temp directory for every test."""
    home = tmp_path / "roster-home"
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.delenv("ROSTER_DATABASE_URL", raising=False)
    monkeypatch.delenv("ROSTER_STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("ROSTER_LOG_LEVEL", raising=False)
    get_roster_home.cache_clear()
    yield home
    get_roster_home.cache_clear()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo configure_logging() and redaction changes made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    configure_redaction(enabled=True)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config_toml_content(tmp_path: Path) -> str:
    """Valid TOML config content using the document backend."""
    return f"""
[storage]
backend = "document"
documents_path = "{(tmp_path / "docs").as_posix()}"

[tools]
default_list_limit = 10
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


@pytest.fixture
def sql_config(tmp_path: Path) -> RosterConfig:
    return RosterConfig(
        storage=StorageConfig(backend="sql", database_path=tmp_path / "roster.db")
    )


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
async def sql_storage(tmp_path: Path) -> AsyncGenerator[SQLStorage, None]:
    """SQL storage on a temporary SQLite database."""
    storage = SQLStorage(Database(database_path=tmp_path / "test.db"))
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
async def document_storage(
    tmp_path: Path,
) -> AsyncGenerator[DocumentStorage, None]:
    """Document storage in a temporary directory."""
    storage = DocumentStorage(tmp_path / "documents")
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture(params=["sql", "document"])
async def storage(
    request: pytest.FixtureRequest, tmp_path: Path
) -> AsyncGenerator[StoragePort, None]:
    """Each storage backend in turn; behavior must be identical."""
    backend: StoragePort
    if request.param == "sql":
        backend = SQLStorage(Database(database_path=tmp_path / "param.db"))
    else:
        backend = DocumentStorage(tmp_path / "param-documents")
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
def repository(storage: StoragePort) -> PeopleRepository:
    return PeopleRepository(storage)


# =============================================================================
# Tool Fixtures
# =============================================================================


@pytest.fixture
def tool_registry(repository: PeopleRepository) -> ToolRegistry:
    registry = ToolRegistry()
    register_people_tools(registry, repository)
    return registry


@pytest.fixture
def tool_executor(tool_registry: ToolRegistry) -> ToolExecutor:
    return ToolExecutor(tool_registry)


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
