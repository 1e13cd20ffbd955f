"""CLI command modules."""

from roster.cli.commands import config, people, tools

__all__ = [
    "config",
    "people",
    "tools",
]
