"""Tests for tool base classes and the registry."""

from __future__ import annotations

import json

import pytest
from pydantic import BaseModel

from reagent.tools.base import (
    FunctionTool,
    Tool,
    ToolArgumentError,
    ToolDispatcher,
    ToolExecutionError,
    ToolNotAvailableError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolPriority,
    TypedTool,
)
from reagent.tools.registry import ToolRegistry


class CalculatorArgs(BaseModel):
    a: int
    b: int


class AddTool(TypedTool[CalculatorArgs]):
    name = "add"
    description = "Add two integers"
    priority = ToolPriority.CORE
    arguments_model = CalculatorArgs

    async def run(self, args: CalculatorArgs) -> str:
        return str(args.a + args.b)


class CalendarTool(Tool):
    name = "calendar"
    description = "Read calendar events"
    priority = ToolPriority.IMPORTANT

    async def execute(self, arguments: str) -> str:
        raise ToolPermissionError("Calendar access denied")

    def suggestion_for(self, error: Exception) -> str | None:
        return "Grant calendar access in Settings."


class TestToolError:
    def test_payload_shape(self):
        error = ToolExecutionError("disk full", tool_name="save", suggestion="Free some space.")
        assert json.loads(error.to_payload()) == {
            "error": "disk full",
            "kind": "execution_failed",
            "suggestion": "Free some space.",
        }

    def test_payload_omits_empty_suggestion(self):
        assert "suggestion" not in json.loads(ToolNotFoundError("x").to_payload())


class TestTypedTool:
    async def test_valid_arguments(self):
        assert await AddTool().execute('{"a": 2, "b": 3}') == "5"

    async def test_invalid_arguments(self):
        with pytest.raises(ToolArgumentError, match="validation error"):
            await AddTool().execute('{"a": "two"}')

    async def test_malformed_json(self):
        with pytest.raises(ToolArgumentError):
            await AddTool().execute("{oops")

    def test_schema_from_model(self):
        definition = AddTool().definition()
        assert definition.name == "add"
        assert set(definition.parameters["properties"]) == {"a", "b"}


class TestFunctionTool:
    async def test_sync_function_runs(self):
        tool = FunctionTool(lambda city: {"city": city, "temp": 21}, name="weather")
        result = await tool.execute('{"city": "Oslo"}')
        assert json.loads(result) == {"city": "Oslo", "temp": 21}

    async def test_async_function_awaited(self):
        async def greet(name: str) -> str:
            """Greet someone."""
            return f"Hello, {name}"

        tool = FunctionTool(greet)
        assert tool.name == "greet"
        assert tool.description == "Greet someone."
        assert await tool.execute('{"name": "Ada"}') == "Hello, Ada"

    async def test_non_object_arguments_rejected(self):
        tool = FunctionTool(lambda: "x", name="noop")
        with pytest.raises(ToolArgumentError, match="JSON object"):
            await tool.execute("[1, 2]")


class TestToolRegistry:
    def test_satisfies_dispatcher_protocol(self):
        assert isinstance(ToolRegistry(), ToolDispatcher)

    def test_definitions_ordered_by_priority_and_limited(self):
        extra = FunctionTool(lambda: "x", name="extra")
        registry = ToolRegistry([extra, CalendarTool(), AddTool()])

        assert [d.name for d in registry.definitions()] == ["add", "calendar", "extra"]
        assert [d.name for d in registry.definitions(limit=2)] == ["add", "calendar"]

    def test_disable_and_enable(self):
        registry = ToolRegistry([AddTool(), CalendarTool()])
        registry.disable("calendar")

        assert not registry.is_enabled("calendar")
        assert [d.name for d in registry.definitions()] == ["add"]
        assert [d.name for d in registry.all_definitions()] == ["add", "calendar"]
        assert registry.disabled_descriptions() == [("calendar", "Read calendar events")]

        registry.enable("calendar")
        assert registry.is_enabled("calendar")

    def test_unregister(self):
        registry = ToolRegistry([AddTool()])
        registry.unregister("add")
        registry.unregister("missing")
        assert registry.names() == []

    async def test_dispatch_success(self):
        registry = ToolRegistry([AddTool()])
        assert await registry.dispatch("add", '{"a": 1, "b": 1}') == "2"

    async def test_dispatch_unknown(self):
        with pytest.raises(ToolNotFoundError):
            await ToolRegistry().dispatch("nope", "{}")

    async def test_dispatch_disabled(self):
        registry = ToolRegistry([AddTool()])
        registry.disable("add")
        with pytest.raises(ToolNotAvailableError) as exc_info:
            await registry.dispatch("add", '{"a": 1, "b": 1}')
        assert exc_info.value.suggestion == "Enable 'add' in settings to use it."

    async def test_tool_error_gets_suggestion(self):
        registry = ToolRegistry([CalendarTool()])
        with pytest.raises(ToolPermissionError) as exc_info:
            await registry.dispatch("calendar", "{}")
        body = json.loads(exc_info.value.to_payload())
        assert body["kind"] == "permission_denied"
        assert body["suggestion"] == "Grant calendar access in Settings."
        assert exc_info.value.tool_name == "calendar"

    async def test_unexpected_exception_wrapped(self):
        def divide() -> float:
            return 1 / 0

        registry = ToolRegistry([FunctionTool(divide)])
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.dispatch("divide", "{}")
        assert isinstance(exc_info.value.cause, ZeroDivisionError)
