"""Tool dispatch boundary."""

from reagent.tools.base import (
    FunctionTool,
    Tool,
    ToolArgumentError,
    ToolDispatcher,
    ToolError,
    ToolErrorKind,
    ToolExecutionError,
    ToolNotAvailableError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolPriority,
    TypedTool,
)
from reagent.tools.registry import ToolRegistry

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolArgumentError",
    "ToolDispatcher",
    "ToolError",
    "ToolErrorKind",
    "ToolExecutionError",
    "ToolNotAvailableError",
    "ToolNotFoundError",
    "ToolPermissionError",
    "ToolPriority",
    "ToolRegistry",
    "TypedTool",
]
