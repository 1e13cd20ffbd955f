"""Configuration module."""

from roster.config.loader import get_default_config, load_config
from roster.config.models import (
    MAX_LIST_LIMIT,
    ConfigError,
    LoggingConfig,
    RosterConfig,
    StorageConfig,
    ToolsConfig,
)
from roster.config.paths import (
    get_config_path,
    get_database_path,
    get_documents_path,
    get_logs_path,
    get_roster_home,
)

__all__ = [
    "MAX_LIST_LIMIT",
    "ConfigError",
    "LoggingConfig",
    "RosterConfig",
    "StorageConfig",
    "ToolsConfig",
    "get_config_path",
    "get_database_path",
    "get_default_config",
    "get_documents_path",
    "get_logs_path",
    "get_roster_home",
    "load_config",
]
