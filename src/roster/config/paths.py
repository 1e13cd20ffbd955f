"""Centralized path management for Roster.

All state (config, database, documents, logs) lives under a single base
directory. The base directory can be overridden with the ROSTER_HOME
environment variable.

Default location: ~/.roster
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "ROSTER_HOME"


@lru_cache(maxsize=1)
def get_roster_home() -> Path:
    """Get the base directory for all Roster data.

    Resolution order:
    1. ROSTER_HOME environment variable (if set)
    2. Platform default (~/.roster)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".roster"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_roster_home() / "config.toml"


def get_database_path() -> Path:
    """Get the default SQLite database path."""
    return get_roster_home() / "data" / "roster.db"


def get_documents_path() -> Path:
    """Get the document store directory (one JSONL file per collection)."""
    return get_roster_home() / "documents"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_roster_home() / "logs"
