"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from roster.config.models import ConfigError, RosterConfig
from roster.config.paths import get_config_path

logger = logging.getLogger(__name__)

DATABASE_URL_ENV_VAR = "ROSTER_DATABASE_URL"
STORAGE_BACKEND_ENV_VAR = "ROSTER_STORAGE_BACKEND"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.roster/config.toml (or ROSTER_HOME)
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides where the config file leaves values unset."""
    storage = config.setdefault("storage", {})
    if storage.get("database_url") is None:
        if url := os.environ.get(DATABASE_URL_ENV_VAR):
            storage["database_url"] = url
    if backend := os.environ.get(STORAGE_BACKEND_ENV_VAR):
        storage["backend"] = backend
    return config


def load_config(path: Path | None = None) -> RosterConfig:
    """Load configuration from a TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to built-in defaults when none exist.

    Returns:
        Validated RosterConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the file is not valid TOML or fails validation.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is None:
        logger.debug("config_defaults_used")
    else:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
        logger.debug("config_loaded", extra={"file.path": str(config_path)})

    raw_config = _apply_env_overrides(raw_config)

    try:
        return RosterConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def get_default_config() -> RosterConfig:
    """Get a default configuration for development/testing."""
    return RosterConfig()
