"""People registry tools.

Every tool follows the same pattern: validate the flat parameter dict with a
pydantic model, call the repository, and wrap the outcome in a ToolResult.
Failures never escape a tool; they come back as error results.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as ParamsValidationError

from roster.config.models import ToolsConfig
from roster.people.types import (
    METADATA_FIELDS,
    UNSET,
    MetadataUpdate,
    Person,
    PersonInput,
    UnsetType,
    ValidationError,
    merge_metadata,
)
from roster.tools.base import Tool, ToolContext, ToolResult

if TYPE_CHECKING:
    from roster.people.repository import PeopleRepository
    from roster.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _clean_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Flatten a pydantic JSON schema into a plain object schema.

    Optional fields (``anyOf`` with null) become their non-null type and
    pydantic's generated titles are dropped.
    """
    properties: dict[str, Any] = {}
    for name, prop in schema.get("properties", {}).items():
        prop = {k: v for k, v in prop.items() if k not in ("title", "default")}
        if "anyOf" in prop:
            variants = [v for v in prop.pop("anyOf") if v.get("type") != "null"]
            if len(variants) == 1:
                prop = {**variants[0], **prop}
            else:
                prop["anyOf"] = variants
        properties[name] = prop

    cleaned: dict[str, Any] = {"type": "object", "properties": properties}
    if required := schema.get("required"):
        cleaned["required"] = list(required)
    return cleaned


def _format_params_error(error: ParamsValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail["loc"]) or "input"
        parts.append(f"{location}: {detail['msg']}")
    return "Invalid parameters: " + "; ".join(parts)


P = TypeVar("P", bound=BaseModel)


class PeopleTool(Tool, Generic[P]):
    """Base class for tools backed by the people repository."""

    params_model: ClassVar[type[BaseModel]]

    def __init__(self, repository: PeopleRepository) -> None:
        self._repository = repository

    @property
    def input_schema(self) -> dict[str, Any]:
        return _clean_schema(self.params_model.model_json_schema())

    async def execute(
        self,
        input_data: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        try:
            params = self.params_model.model_validate(input_data)
        except ParamsValidationError as e:
            return ToolResult.error(_format_params_error(e))

        try:
            return await self.run(params, context)  # type: ignore[arg-type]
        except ValidationError as e:
            return ToolResult.error(str(e))
        except Exception as e:
            logger.exception("people_tool_failed", extra={"tool.name": self.name})
            return ToolResult.error(str(e) or type(e).__name__)

    @abstractmethod
    async def run(self, params: P, context: ToolContext) -> ToolResult:
        """Run the operation with validated parameters."""
        ...


class PersonRefParams(BaseModel):
    id: str | None = Field(default=None, description="The unique ID of the person")
    name: str | None = Field(default=None, description="The name of the person")


def _not_found(params: PersonRefParams) -> ToolResult:
    if params.id:
        return ToolResult.error(f'No person found with ID "{params.id}"')
    return ToolResult.error(f'No person found with name "{params.name}"')


def _missing_ref() -> ToolResult:
    return ToolResult.error("Either id or name must be provided")


# List


class ListPeopleParams(BaseModel):
    query: str | None = Field(
        default=None, description="Search query to filter people by name"
    )
    limit: int | None = Field(
        default=None,
        description="Maximum number of results to return (default: 20, max: 100)",
    )


class ListPeopleTool(PeopleTool[ListPeopleParams]):
    """Search and list people by name."""

    params_model = ListPeopleParams

    def __init__(
        self, repository: PeopleRepository, config: ToolsConfig | None = None
    ) -> None:
        super().__init__(repository)
        self._config = config or ToolsConfig()

    @property
    def name(self) -> str:
        return "people_list"

    @property
    def title(self) -> str:
        return "List People"

    @property
    def description(self) -> str:
        return "Search and list people in the registry. Can filter by name."

    async def run(self, params: ListPeopleParams, context: ToolContext) -> ToolResult:
        limit = params.limit
        if limit is None:
            limit = self._config.default_list_limit
        limit = max(1, min(limit, self._config.max_list_limit))

        people = await self._repository.list_people(query=params.query, limit=limit)

        data: dict[str, Any] = {
            "count": len(people),
            "people": [
                {
                    "id": p.id,
                    "name": p.name,
                    "description": p.description,
                    "relationship": p.get_field("relationship"),
                }
                for p in people
            ],
        }
        if not people:
            data["message"] = (
                f'No people found matching "{params.query}"'
                if params.query
                else "No people in the registry yet"
            )
        return ToolResult.success(data)


# Get


class GetPersonTool(PeopleTool[PersonRefParams]):
    """Look up one person by ID or name."""

    params_model = PersonRefParams

    @property
    def name(self) -> str:
        return "people_get"

    @property
    def title(self) -> str:
        return "Get Person"

    @property
    def description(self) -> str:
        return "Get detailed information about a specific person by ID or name."

    async def run(self, params: PersonRefParams, context: ToolContext) -> ToolResult:
        if params.id:
            person = await self._repository.get_by_id(params.id)
        elif params.name:
            person = await self._repository.get_by_name(params.name)
        else:
            return _missing_ref()

        if person is None:
            return _not_found(params)
        return ToolResult.success(_person_details(person))


def _person_details(person: Person) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": person.id,
        "name": person.name,
        "description": person.description,
        "created_at": person.created_at.isoformat(),
        "updated_at": person.updated_at.isoformat(),
    }
    for key in METADATA_FIELDS:
        value = person.get_field(key)
        if value is not None:
            data[key] = value
    return data


# Upsert


class UpsertPersonParams(BaseModel):
    id: str | None = Field(
        default=None, description="The unique ID of the person to update"
    )
    name: str | None = Field(
        default=None,
        description="The name of the person (required unless id is given)",
    )
    description: str | None = Field(
        default=None, description="A description or notes about this person"
    )
    relationship: str | None = Field(
        default=None,
        description="The relationship to the user (e.g., friend, colleague, family)",
    )
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    birthday: str | None = Field(
        default=None, description="Birthday in ISO format (YYYY-MM-DD)"
    )
    workplace: str | None = Field(
        default=None, description="Workplace or company name"
    )

    def metadata_update(self) -> MetadataUpdate:
        """Collect the metadata fields that were supplied.

        Omitted (or null) fields are left out so stored values survive;
        empty strings are kept so the merge clears them.
        """
        return MetadataUpdate(
            fields={
                key: value
                for key in METADATA_FIELDS
                if (value := getattr(self, key)) is not None
            }
        )

    def description_input(self) -> str | None | UnsetType:
        if self.description is None:
            return UNSET
        return self.description if self.description.strip() else None


class UpsertPersonTool(PeopleTool[UpsertPersonParams]):
    """Add a person or update an existing one.

    With an id, updates that person. Without one, updates the person whose
    name matches (case- and whitespace-insensitive) or adds a new person.
    Metadata fields are merged one by one into what is already stored.
    """

    params_model = UpsertPersonParams

    @property
    def name(self) -> str:
        return "people_upsert"

    @property
    def title(self) -> str:
        return "Add/Update Person"

    @property
    def description(self) -> str:
        return (
            "Add a new person or update an existing person. If a person with "
            "the same name exists, their information will be updated. Pass an "
            "empty string for a field to clear it."
        )

    async def run(
        self, params: UpsertPersonParams, context: ToolContext
    ) -> ToolResult:
        updates = params.metadata_update()
        description = params.description_input()

        if params.id:
            existing = await self._repository.get_by_id(params.id)
            if existing is None:
                return ToolResult.error(f'No person found with ID "{params.id}"')

            updated = await self._repository.update(
                params.id,
                PersonInput(
                    name=params.name.strip() if params.name is not None else None,
                    description=description,
                    metadata=(
                        merge_metadata(existing.metadata, updates)
                        if updates
                        else UNSET
                    ),
                ),
            )
            if updated is None:
                return ToolResult.error(f'No person found with ID "{params.id}"')
            return ToolResult.success(_upsert_payload(updated, created=False))

        name = params.name.strip() if params.name else ""
        if not name:
            return ToolResult.error("Name is required and must be a non-empty string")

        metadata: dict[str, Any] | None | UnsetType = UNSET
        if updates:
            existing = await self._repository.get_by_name(name)
            metadata = merge_metadata(
                existing.metadata if existing else None, updates
            )

        result = await self._repository.upsert(
            PersonInput(name=name, description=description, metadata=metadata)
        )
        return ToolResult.success(_upsert_payload(result.person, result.created))


def _upsert_payload(person: Person, created: bool) -> dict[str, Any]:
    return {
        "id": person.id,
        "name": person.name,
        "description": person.description,
        "metadata": person.metadata,
        "created": created,
        "message": (
            f'Added "{person.name}" to the registry'
            if created
            else f'Updated information for "{person.name}"'
        ),
    }


# Delete


class DeletePersonTool(PeopleTool[PersonRefParams]):
    """Remove a person by ID or name."""

    params_model = PersonRefParams

    @property
    def name(self) -> str:
        return "people_delete"

    @property
    def title(self) -> str:
        return "Delete Person"

    @property
    def description(self) -> str:
        return "Remove a person from the registry by ID or name."

    async def run(self, params: PersonRefParams, context: ToolContext) -> ToolResult:
        if params.id:
            deleted = await self._repository.delete(params.id)
        elif params.name:
            deleted = await self._repository.delete_by_name(params.name)
        else:
            return _missing_ref()

        if not deleted:
            return _not_found(params)
        return ToolResult.success(
            {
                "deleted": True,
                "message": (
                    f"Successfully removed {params.name or params.id} from the registry"
                ),
            }
        )


def create_people_tools(
    repository: PeopleRepository, config: ToolsConfig | None = None
) -> list[Tool]:
    """Create the list, get, upsert and delete tools for a repository."""
    return [
        ListPeopleTool(repository, config),
        GetPersonTool(repository),
        UpsertPersonTool(repository),
        DeletePersonTool(repository),
    ]


def register_people_tools(
    registry: ToolRegistry,
    repository: PeopleRepository,
    config: ToolsConfig | None = None,
) -> Callable[[], None]:
    """Register the people tools and return a callable that removes them."""
    tools = create_people_tools(repository, config)
    dispose = registry.register_all(tools)
    logger.info(
        "people_tools_registered", extra={"tools": [tool.name for tool in tools]}
    )
    return dispose
