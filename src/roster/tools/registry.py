"""Name-indexed collection of tools a host can call."""

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from roster.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Tools by name, in registration order. Names are unique."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool
        logger.debug("tool_registered", extra={"tool.name": tool.name})

    def register_all(self, tools: Iterable[Tool]) -> Callable[[], None]:
        """Register tools as a group.

        Either every tool is registered or, on a name clash, none are.
        Returns a callable that removes the group again.
        """
        added: list[str] = []
        try:
            for tool in tools:
                self.register(tool)
                added.append(tool.name)
        except ValueError:
            self._remove(added)
            raise
        return lambda: self._remove(added)

    def _remove(self, names: list[str]) -> None:
        for name in names:
            self.unregister(name)

    def unregister(self, name: str) -> None:
        if self._tools.pop(name, None) is not None:
            logger.debug("tool_unregistered", extra={"tool.name": name})

    def get(self, name: str) -> Tool:
        """Look up a tool. Raises KeyError for unknown names."""
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Tool '{name}' not found") from None

    def has(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get_definitions(self) -> list[dict[str, Any]]:
        return [tool.to_definition() for tool in self]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))
