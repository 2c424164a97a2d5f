"""Tool boundary: tool base classes, dispatcher protocol and typed failures."""

from __future__ import annotations

import asyncio
import inspect
import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import IntEnum, StrEnum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from reagent.models.message import ToolDefinition

# ── Failures ───────────────────────────────────────────────────────────────────


class ToolErrorKind(StrEnum):
    """Failure classes reported by the dispatch boundary."""

    ARGUMENT_INVALID = "argument_invalid"
    EXECUTION_FAILED = "execution_failed"
    PERMISSION_DENIED = "permission_denied"
    NOT_AVAILABLE = "not_available"


class ToolError(Exception):
    """
    Base class for tool failures.

    The agent never lets these escape ``run()``: they are serialized with
    :meth:`to_payload` and fed back to the model as the tool's answer.
    """

    kind: ToolErrorKind = ToolErrorKind.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        *,
        tool_name: str = "",
        suggestion: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tool_name = tool_name
        self.suggestion = suggestion
        self.cause = cause

    def to_payload(self) -> str:
        """JSON failure object placed in the tool turn."""
        body: dict[str, str] = {"error": self.message, "kind": str(self.kind)}
        if self.suggestion:
            body["suggestion"] = self.suggestion
        return json.dumps(body)


class ToolArgumentError(ToolError):
    """Arguments were not valid JSON or did not match the tool's schema."""

    kind = ToolErrorKind.ARGUMENT_INVALID


class ToolExecutionError(ToolError):
    """The tool ran and failed."""

    kind = ToolErrorKind.EXECUTION_FAILED


class ToolPermissionError(ToolError):
    """The tool needs a permission the user has not granted."""

    kind = ToolErrorKind.PERMISSION_DENIED


class ToolNotAvailableError(ToolError):
    """The tool is disabled or cannot run on this host."""

    kind = ToolErrorKind.NOT_AVAILABLE


class ToolNotFoundError(ToolNotAvailableError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool {tool_name!r} not found", tool_name=tool_name)


# ── Tools ──────────────────────────────────────────────────────────────────────


class ToolPriority(IntEnum):
    """Selection order when a provider limits how many tools it accepts."""

    CORE = 1
    IMPORTANT = 2
    EXTENDED = 3


class Tool(ABC):
    """
    A callable tool. Subclasses set ``name`` and ``description`` and implement
    :meth:`execute`.

    Tools that must run on a particular thread or event loop enforce that
    themselves; the agent only awaits :meth:`execute`.
    """

    name: str
    description: str
    priority: ToolPriority = ToolPriority.EXTENDED

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for the arguments object."""
        return {"type": "object", "properties": {}}

    @abstractmethod
    async def execute(self, arguments: str) -> str:
        """Run with JSON-serialized arguments and return a serialized result."""

    def suggestion_for(self, error: Exception) -> str | None:
        """Optional recovery hint included in the failure payload."""
        return None

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, parameters=self.parameters
        )


ArgsT = TypeVar("ArgsT", bound=BaseModel)


class TypedTool(Tool, Generic[ArgsT]):
    """
    A tool whose arguments are validated against a pydantic model.

    The JSON schema advertised to the provider is derived from the model, and
    malformed or mismatched arguments raise :class:`ToolArgumentError` before
    :meth:`run` is called.

    Example::

        class CalculatorArgs(BaseModel):
            expression: str

        class Calculator(TypedTool[CalculatorArgs]):
            name = "calculator"
            description = "Evaluate an arithmetic expression"
            arguments_model = CalculatorArgs

            async def run(self, args: CalculatorArgs) -> str:
                ...
    """

    arguments_model: type[ArgsT]

    @property
    def parameters(self) -> dict[str, Any]:
        return self.arguments_model.model_json_schema()

    async def execute(self, arguments: str) -> str:
        try:
            args = self.arguments_model.model_validate_json(arguments or "{}")
        except ValidationError as exc:
            raise ToolArgumentError(
                f"Invalid arguments: {exc.error_count()} validation error(s): "
                + "; ".join(err["msg"] for err in exc.errors()),
                tool_name=self.name,
                cause=exc,
            ) from exc
        return await self.run(args)

    @abstractmethod
    async def run(self, args: ArgsT) -> str:
        """Execute with validated arguments."""


class FunctionTool(Tool):
    """
    Wrap a plain function as a tool. JSON object arguments become keyword
    arguments; non-string return values are JSON-encoded.

    Synchronous functions run in a worker thread via ``asyncio.to_thread``.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
        priority: ToolPriority = ToolPriority.EXTENDED,
    ) -> None:
        self._func = func
        self.name = name or func.__name__
        self.description = description or inspect.getdoc(func) or self.name
        self._parameters = parameters or {"type": "object", "properties": {}}
        self.priority = priority

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    async def execute(self, arguments: str) -> str:
        try:
            kwargs = json.loads(arguments or "{}")
        except json.JSONDecodeError as exc:
            raise ToolArgumentError(
                f"Arguments are not valid JSON: {exc.msg}", tool_name=self.name, cause=exc
            ) from exc
        if not isinstance(kwargs, dict):
            raise ToolArgumentError("Arguments must be a JSON object", tool_name=self.name)

        if inspect.iscoroutinefunction(self._func):
            result = await self._func(**kwargs)
        else:
            result = await asyncio.to_thread(self._func, **kwargs)
        return result if isinstance(result, str) else json.dumps(result)


# ── Dispatch boundary ──────────────────────────────────────────────────────────


@runtime_checkable
class ToolDispatcher(Protocol):
    """What the agent needs from a tool registry."""

    def definitions(self, limit: int | None = None) -> list[ToolDefinition]:
        """Enabled tool schemas, most important first, at most ``limit`` of them."""
        ...

    async def dispatch(self, name: str, arguments: str) -> str:
        """Invoke a tool; raise :class:`ToolError` (or any exception) on failure."""
        ...
