"""Command-line interface."""

from roster.cli.app import app

__all__ = ["app"]
