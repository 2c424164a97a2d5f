"""Core turn and tool-call data models for Reagent."""

from __future__ import annotations

import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID

Role = Literal["system", "user", "assistant", "tool"]


def make_id(prefix: str) -> str:
    """
    Generate a ULID-based sortable identifier.

    Args:
        prefix: Short prefix for readability (e.g. ``"turn"``, ``"call"``, ``"run"``).

    Returns:
        ID string in the format ``"{prefix}_{ulid}"``.
    """
    return f"{prefix}_{ULID()}"


# ── Tool transit objects ───────────────────────────────────────────────────────


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: make_id("call"))
    name: str
    arguments: str = "{}"
    """Serialized (JSON) arguments exactly as the model produced them."""


class ToolResult(BaseModel):
    """Outcome of dispatching a single ToolCall."""

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    tool_name: str
    success: bool
    payload: str
    """Serialized tool output, or a JSON failure object when ``success`` is False."""
    error_kind: str | None = None


class ToolDefinition(BaseModel):
    """Schema of a callable tool as advertised to the provider."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai(self) -> dict[str, Any]:
        """Render in the chat-completions ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


# ── Turns ──────────────────────────────────────────────────────────────────────


class Turn(BaseModel):
    """
    One immutable step in the conversation.

    The role never changes after creation. Edits are modelled as appending a
    new turn; the history owns ordering and never mutates a turn in place.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: make_id("turn"))
    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] | None = None
    """Only set on assistant turns that request tools."""
    tool_call_id: str | None = None
    """Back-reference to the originating ToolCall (tool turns only)."""
    tool_name: str | None = None
    pinned: bool = False
    """Exempt from standard trimming. Aggressive trim still discards it."""
    created_at: int = Field(default_factory=lambda: int(time.time() * 1000))
    """Unix millisecond timestamp."""

    @classmethod
    def system(cls, content: str) -> Turn:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str, *, pinned: bool = False) -> Turn:
        return cls(role="user", content=content, pinned=pinned)

    @classmethod
    def assistant(
        cls,
        content: str,
        tool_calls: list[ToolCall] | tuple[ToolCall, ...] | None = None,
        *,
        pinned: bool = False,
    ) -> Turn:
        return cls(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
            pinned=pinned,
        )

    @classmethod
    def tool(cls, call_id: str, name: str, content: str) -> Turn:
        return cls(role="tool", content=content, tool_call_id=call_id, tool_name=name)

    @property
    def requested_call_ids(self) -> frozenset[str]:
        """IDs of the tool calls this turn requested (empty for non-assistant turns)."""
        if not self.tool_calls:
            return frozenset()
        return frozenset(call.id for call in self.tool_calls)


# ── Streaming ──────────────────────────────────────────────────────────────────


class StreamChunk(BaseModel):
    """One incremental piece of a provider response."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    is_complete: bool = False
