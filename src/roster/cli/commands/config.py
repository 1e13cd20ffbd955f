"""Configuration commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from roster.cli.console import console, dim, error, success

ACTIONS = ("show", "validate", "path")


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate, path"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Config file (default: ./config.toml, then $ROSTER_HOME)",
            ),
        ] = None,
    ) -> None:
        """Show, validate or locate the configuration.

        Examples:
            roster config show
            roster config validate --path ./config.toml
        """
        if action is None:
            click.echo(click.get_current_context().get_help())
            raise typer.Exit(0)
        if action not in ACTIONS:
            error(f"Unknown action: {action}")
            dim(f"Valid actions: {', '.join(ACTIONS)}")
            raise typer.Exit(1)

        from roster.config import ConfigError, get_config_path, load_config

        if action == "path":
            location = path or get_config_path()
            console.print(str(location), highlight=False, soft_wrap=True)
            return

        try:
            loaded = load_config(path.expanduser() if path else None)
        except (FileNotFoundError, ConfigError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        if action == "validate":
            success("Configuration is valid")
        else:
            console.print_json(loaded.model_dump_json())
