"""Runs tools by name and logs each call."""

import logging
import time
from collections.abc import Callable
from typing import Any

from roster.tools.base import ToolContext, ToolResult
from roster.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# (tool name, input, result, duration in ms)
ExecutionCallback = Callable[[str, dict[str, Any], ToolResult, int], None]

# Error messages are truncated in logs
_LOGGED_ERROR_CHARS = 500


class ToolExecutor:
    """Dispatches calls to registered tools.

    Always returns a ToolResult: unknown tools and tools that raise despite
    the Tool contract both come back as error results.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        on_execution: ExecutionCallback | None = None,
    ):
        self._registry = registry
        self._on_execution = on_execution

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(
        self,
        tool_name: str,
        input_data: dict[str, Any],
        context: ToolContext | None = None,
    ) -> ToolResult:
        if not self._registry.has(tool_name):
            logger.error("tool_not_found", extra={"tool.name": tool_name})
            return ToolResult.error(f"Tool '{tool_name}' not found")

        tool = self._registry.get(tool_name)
        started = time.monotonic()
        try:
            result = await tool.execute(input_data, context or ToolContext())
        except Exception as e:
            logger.exception("tool_execution_failed", extra={"tool.name": tool_name})
            result = ToolResult.error(f"Tool execution failed: {e}")
        duration_ms = int((time.monotonic() - started) * 1000)

        self._log(tool_name, input_data, result, duration_ms)
        if self._on_execution is not None:
            try:
                self._on_execution(tool_name, input_data, result, duration_ms)
            except Exception:
                logger.warning("execution_callback_failed", exc_info=True)
        return result

    def _log(
        self,
        tool_name: str,
        input_data: dict[str, Any],
        result: ToolResult,
        duration_ms: int,
    ) -> None:
        extra: dict[str, Any] = {
            "tool.name": tool_name,
            "tool.arguments": input_data,
            "duration_ms": duration_ms,
        }
        if result.is_error:
            extra["error.message"] = result.content[:_LOGGED_ERROR_CHARS]
            logger.warning("tool_executed", extra=extra)
        else:
            logger.info("tool_executed", extra=extra)

    def get_definitions(self) -> list[dict[str, Any]]:
        return self._registry.get_definitions()
