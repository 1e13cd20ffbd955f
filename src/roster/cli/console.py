"""Console output helpers for CLI commands."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


def _styled(style: str, msg: str) -> None:
    # Stored names and notes are user text; never let them parse as markup
    console.print(f"[{style}]{escape(msg)}[/{style}]", highlight=False)


def error(msg: str) -> None:
    _styled("red", msg)


def success(msg: str) -> None:
    _styled("green", msg)


def dim(msg: str) -> None:
    _styled("dim", msg)


def create_table(title: str, columns: list[tuple[str, str | dict[str, Any]]]) -> Table:
    """Build a table; each column is (header, style) or (header, column kwargs)."""
    table = Table(title=escape(title))
    for header, spec in columns:
        kwargs = spec if isinstance(spec, dict) else {"style": spec}
        table.add_column(header, **kwargs)
    return table
