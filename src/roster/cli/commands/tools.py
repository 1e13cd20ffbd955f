"""Tool inspection command."""

import json
from pathlib import Path
from typing import Annotated

import typer

from roster.cli.console import console, create_table


def register(app: typer.Typer) -> None:
    """Register the tools command."""

    @app.command("tools")
    def list_tools(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print the full definitions as JSON"),
        ] = False,
    ) -> None:
        """List the tools a host runtime can call, with their parameters."""
        from roster.cli.runtime import get_config, tool_definitions

        definitions = tool_definitions(get_config(config_path))
        if as_json:
            console.print_json(json.dumps(definitions))
            return

        table = create_table(
            "Tools",
            [
                ("Name", {"style": "bold", "no_wrap": True}),
                ("Title", ""),
                ("Parameters", "dim"),
            ],
        )
        for definition in definitions:
            params = definition["input_schema"].get("properties", {})
            table.add_row(
                definition["name"], definition["title"], ", ".join(params) or "-"
            )
        console.print(table)
