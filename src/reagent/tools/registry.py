"""In-process tool registry implementing the dispatch boundary."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from reagent.models.message import ToolDefinition
from reagent.tools.base import (
    Tool,
    ToolError,
    ToolExecutionError,
    ToolNotAvailableError,
    ToolNotFoundError,
)


class ToolRegistry:
    """
    Holds the tools an agent may call and dispatches calls by name.

    Each agent receives its registry at construction; there is no process-wide
    instance. Tools can be disabled without being unregistered so the system
    prompt can still tell the user they exist.

    Example::

        registry = ToolRegistry([Calculator(), WeatherTool()])
        registry.disable("weather")
        registry.definitions(limit=provider.max_tools)
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        self._disabled: set[str] = set()
        self._logger = structlog.get_logger("reagent.tools")
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name."""
        if tool.name in self._tools:
            self._logger.debug("tool_replaced", tool=tool.name)
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Remove a tool. No-op if not registered."""
        self._tools.pop(name, None)
        self._disabled.discard(name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return sorted(self._tools)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def disable(self, name: str) -> None:
        if name in self._tools:
            self._disabled.add(name)

    def is_enabled(self, name: str) -> bool:
        return name in self._tools and name not in self._disabled

    def _ordered(self, tools: Iterable[Tool]) -> list[Tool]:
        return sorted(tools, key=lambda t: (t.priority, t.name))

    def definitions(self, limit: int | None = None) -> list[ToolDefinition]:
        """
        Enabled tool schemas ordered by priority.

        Args:
            limit: Provider's maximum tools per call. None = no limit.
        """
        enabled = self._ordered(t for t in self._tools.values() if t.name not in self._disabled)
        if limit is not None:
            enabled = enabled[: max(0, limit)]
        return [tool.definition() for tool in enabled]

    def all_definitions(self) -> list[ToolDefinition]:
        """Every registered tool regardless of enabled state."""
        return [tool.definition() for tool in self._ordered(self._tools.values())]

    def disabled_descriptions(self) -> list[tuple[str, str]]:
        """``(name, description)`` pairs of disabled tools, for the system prompt."""
        disabled = self._ordered(t for t in self._tools.values() if t.name in self._disabled)
        return [(tool.name, tool.description) for tool in disabled]

    async def dispatch(self, name: str, arguments: str) -> str:
        """
        Execute a tool by name.

        Raises:
            ToolNotFoundError: No tool registered under ``name``.
            ToolNotAvailableError: The tool is disabled.
            ToolError: Any other tool failure. Unexpected exceptions are wrapped
                in :class:`ToolExecutionError`; recovery suggestions from the
                tool are attached.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        if name in self._disabled:
            raise ToolNotAvailableError(
                f"Tool {name!r} is disabled",
                tool_name=name,
                suggestion=f"Enable '{name}' in settings to use it.",
            )

        self._logger.info("tool_executing", tool=name)
        try:
            return await tool.execute(arguments)
        except ToolError as exc:
            exc.tool_name = exc.tool_name or name
            exc.suggestion = exc.suggestion or tool.suggestion_for(exc)
            raise
        except Exception as exc:
            raise ToolExecutionError(
                str(exc) or type(exc).__name__,
                tool_name=name,
                suggestion=tool.suggestion_for(exc),
                cause=exc,
            ) from exc
