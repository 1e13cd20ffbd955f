"""Tool interface exposed to host runtimes.

A host (an assistant runtime, the CLI) discovers tools through their
definitions and invokes them with a flat dict of parameters. Tools report
failure through the result, never by raising.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolContext:
    """Who is calling a tool, as far as the host knows."""

    user_id: str | None = None
    session_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Outcome of one tool call.

    On success ``data`` holds the JSON-compatible payload and ``content``
    its serialized form. On failure ``content`` is the message to show.
    """

    content: str
    is_error: bool = False
    data: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.is_error

    @classmethod
    def success(cls, data: dict[str, Any], **metadata: Any) -> "ToolResult":
        content = json.dumps(data, ensure_ascii=False, default=str)
        return cls(content=content, data=data, metadata=metadata)

    @classmethod
    def error(cls, message: str, **metadata: Any) -> "ToolResult":
        return cls(content=message, is_error=True, metadata=metadata)

    def to_payload(self) -> dict[str, Any]:
        """Envelope handed back to hosts: ``{"success", "data"|"error"}``."""
        if self.is_error:
            return {"success": False, "error": self.content}
        return {"success": True, "data": self.data or {}}


class Tool(ABC):
    """An operation a host can invoke by name."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier, e.g. ``people_get``."""
        ...

    @property
    def title(self) -> str:
        """Display name for hosts that show tools to a person."""
        return self.name.replace("_", " ").title()

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema (an ``object``) describing the accepted parameters."""
        ...

    @abstractmethod
    async def execute(
        self,
        input_data: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult: ...

    def to_definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "input_schema": self.input_schema,
        }
