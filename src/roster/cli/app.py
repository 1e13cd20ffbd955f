"""Main CLI application."""

import typer

from roster.cli.commands import config, people, tools

app = typer.Typer(
    name="roster",
    help="Roster - keep track of the people in your life",
    no_args_is_help=True,
)

people.register(app)
config.register(app)
tools.register(app)


if __name__ == "__main__":
    app()
