"""Tool system exposing the registry to host runtimes."""

from roster.tools.base import Tool, ToolContext, ToolResult
from roster.tools.executor import ToolExecutor
from roster.tools.people import (
    DeletePersonTool,
    GetPersonTool,
    ListPeopleTool,
    UpsertPersonTool,
    create_people_tools,
    register_people_tools,
)
from roster.tools.registry import ToolRegistry

__all__ = [
    # Base
    "Tool",
    "ToolContext",
    "ToolResult",
    # Registry & Executor
    "ToolExecutor",
    "ToolRegistry",
    # People tools
    "DeletePersonTool",
    "GetPersonTool",
    "ListPeopleTool",
    "UpsertPersonTool",
    "create_people_tools",
    "register_people_tools",
]
