"""People registry commands: list, get, upsert, delete."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer

from roster.cli.console import console, create_table, dim, error, success
from roster.cli.runtime import get_config, run_tool
from roster.tools.base import ToolResult

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to configuration file"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print the raw JSON result"),
]
IdOption = Annotated[
    str | None,
    typer.Option("--id", help="Person ID (takes precedence over name)"),
]


def _execute(
    config_path: Path | None, tool_name: str, input_data: dict[str, Any]
) -> ToolResult:
    config = get_config(config_path)
    try:
        return asyncio.run(run_tool(config, tool_name, input_data))
    except KeyboardInterrupt:
        dim("Cancelled")
        raise typer.Exit(130) from None


def _finish(result: ToolResult, as_json: bool) -> dict[str, Any]:
    """Exit on error results; otherwise return the payload."""
    if result.is_error:
        if as_json:
            console.print_json(json.dumps(result.to_payload()))
        else:
            error(result.content)
        raise typer.Exit(1)
    if as_json:
        console.print_json(result.content)
    return result.data or {}


def _ref_input(person_id: str | None, name: str | None) -> dict[str, Any]:
    input_data: dict[str, Any] = {}
    if person_id:
        input_data["id"] = person_id
    if name:
        input_data["name"] = name
    return input_data


def register(app: typer.Typer) -> None:
    """Register the people commands."""

    @app.command("list")
    def list_people(
        query: Annotated[
            str | None,
            typer.Argument(help="Text to search for in names"),
        ] = None,
        limit: Annotated[
            int | None,
            typer.Option("--limit", "-n", help="Maximum results (capped at 100)"),
        ] = None,
        config_path: ConfigOption = None,
        as_json: JsonOption = False,
    ) -> None:
        """List people, optionally filtered by name.

        Examples:
            roster list          # Everyone, alphabetically
            roster list mar      # Names containing "mar"
        """
        input_data: dict[str, Any] = {}
        if query is not None:
            input_data["query"] = query
        if limit is not None:
            input_data["limit"] = limit

        data = _finish(_execute(config_path, "people_list", input_data), as_json)
        if as_json:
            return

        if not data["people"]:
            dim(data.get("message", "No people found."))
            return

        table = create_table(
            f"People ({data['count']})",
            [
                ("ID", {"style": "dim", "no_wrap": True}),
                ("Name", "bold"),
                ("Relationship", ""),
                ("Description", ""),
            ],
        )
        for person in data["people"]:
            table.add_row(
                person["id"],
                person["name"],
                person.get("relationship") or "-",
                person.get("description") or "-",
            )
        console.print(table)

    @app.command("get")
    def get_person(
        name: Annotated[
            str | None,
            typer.Argument(help="Name of the person"),
        ] = None,
        person_id: IdOption = None,
        config_path: ConfigOption = None,
        as_json: JsonOption = False,
    ) -> None:
        """Show one person by name or ID."""
        data = _finish(
            _execute(config_path, "people_get", _ref_input(person_id, name)), as_json
        )
        if as_json:
            return

        table = create_table(data["name"], [("Field", "bold"), ("Value", "")])
        for key, value in data.items():
            if key == "name" or value is None:
                continue
            table.add_row(key, str(value))
        console.print(table)

    @app.command("upsert")
    def upsert_person(
        name: Annotated[
            str | None,
            typer.Argument(help="Name of the person (optional with --id)"),
        ] = None,
        person_id: IdOption = None,
        description: Annotated[
            str | None, typer.Option("--description", "-d", help="Notes")
        ] = None,
        relationship: Annotated[
            str | None, typer.Option("--relationship", "-r", help="Relationship")
        ] = None,
        email: Annotated[str | None, typer.Option("--email", help="Email")] = None,
        phone: Annotated[str | None, typer.Option("--phone", help="Phone")] = None,
        birthday: Annotated[
            str | None, typer.Option("--birthday", help="Birthday (YYYY-MM-DD)")
        ] = None,
        workplace: Annotated[
            str | None, typer.Option("--workplace", help="Workplace or company")
        ] = None,
        config_path: ConfigOption = None,
        as_json: JsonOption = False,
    ) -> None:
        """Add a person or update an existing one.

        Pass an empty string to clear a field, e.g. --email "".
        """
        fields = {
            "description": description,
            "relationship": relationship,
            "email": email,
            "phone": phone,
            "birthday": birthday,
            "workplace": workplace,
        }
        input_data = _ref_input(person_id, None)
        if name is not None:
            input_data["name"] = name
        input_data.update({k: v for k, v in fields.items() if v is not None})

        data = _finish(_execute(config_path, "people_upsert", input_data), as_json)
        if not as_json:
            success(data["message"])
            dim(f"ID: {data['id']}")

    @app.command("delete")
    def delete_person(
        name: Annotated[
            str | None,
            typer.Argument(help="Name of the person"),
        ] = None,
        person_id: IdOption = None,
        config_path: ConfigOption = None,
        as_json: JsonOption = False,
    ) -> None:
        """Remove a person by name or ID."""
        data = _finish(
            _execute(config_path, "people_delete", _ref_input(person_id, name)),
            as_json,
        )
        if not as_json:
            success(data["message"])
