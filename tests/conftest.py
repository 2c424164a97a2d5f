"""Shared fixtures for Reagent tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import pytest

from reagent.events.bus import AgentEvent, EventBus
from reagent.events.callbacks import AgentCallbacks
from reagent.models.config import AgentConfig, TokenBudget
from reagent.models.message import StreamChunk, ToolCall, ToolDefinition, Turn
from reagent.providers.base import LLMProvider
from reagent.tokens.estimator import TokenEstimator
from reagent.tools.base import FunctionTool, ToolPriority
from reagent.tools.registry import ToolRegistry

Script = list[StreamChunk] | BaseException


def text_reply(*fragments: str) -> list[StreamChunk]:
    """A scripted response streaming ``fragments`` then completing."""
    return [StreamChunk(text=f) for f in fragments] + [StreamChunk(is_complete=True)]


def tool_reply(*calls: ToolCall, text: str = "") -> list[StreamChunk]:
    """A scripted response requesting ``calls``."""
    chunks = [StreamChunk(text=text)] if text else []
    chunks.append(StreamChunk(tool_calls=calls, is_complete=True))
    return chunks


class ScriptedProvider(LLMProvider):
    """
    Provider that replays a fixed script, one entry per stream() call.

    An entry is either a list of chunks or an exception to raise. Once the
    script runs out the last entry repeats.
    """

    name = "scripted"

    def __init__(
        self,
        script: Sequence[Script],
        *,
        native: bool = False,
        available: bool = True,
        max_tools: int = 10,
        native_tokens: int = 0,
    ) -> None:
        self._script = list(script)
        self.handles_tools_natively = native
        self.max_tools = max_tools
        self._available = available
        self._native_tokens = native_tokens
        self.call_count = 0
        self.reset_count = 0
        self.seen_turns: list[list[Turn]] = []
        self.seen_tools: list[list[ToolDefinition]] = []

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def native_tool_tokens(self) -> int:
        return self._native_tokens

    async def stream(
        self,
        turns: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> AsyncIterator[StreamChunk]:
        index = min(self.call_count, len(self._script) - 1)
        self.call_count += 1
        self.seen_turns.append(list(turns))
        self.seen_tools.append(list(tools))
        entry = self._script[index]
        if isinstance(entry, BaseException):
            raise entry
        for chunk in entry:
            yield chunk

    async def reset_session(self) -> None:
        self.reset_count += 1


class RecordingCallbacks(AgentCallbacks):
    """Records every callback invocation in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.events.append((name, args))

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [args for event, args in self.events if event == name]

    def on_thinking(self) -> None:
        self._record("thinking")

    def on_tool_call(self, name: str, arguments: str) -> None:
        self._record("tool_call", name, arguments)

    def on_tool_result(self, name: str, result: str, success: bool) -> None:
        self._record("tool_result", name, result, success)

    def on_stream_chunk(self, text: str) -> None:
        self._record("stream_chunk", text)

    def on_response(self, text: str) -> None:
        self._record("response", text)

    def on_error(self, error: Exception) -> None:
        self._record("error", error)


def echo(text: str = "") -> str:
    """Echo the input text back"""
    return text


def make_budget(history_tokens: int) -> TokenBudget:
    """A budget whose history remainder is exactly ``history_tokens``."""
    return TokenBudget(
        total_context_window=256 + history_tokens,
        system_reserve=0,
        tool_schema_reserve=0,
        response_reserve=256,
    )


@pytest.fixture
def estimator():
    return TokenEstimator()


@pytest.fixture
def event_bus():
    """EventBus with a .collected list for asserting events."""
    bus = EventBus()
    collected: list[tuple[AgentEvent, dict[str, Any]]] = []

    def _collect(event: AgentEvent, payload: dict[str, Any]) -> None:
        collected.append((event, payload))

    bus.subscribe_all(_collect)
    bus.collected = collected  # type: ignore[attr-defined]
    return bus


@pytest.fixture
def callbacks():
    return RecordingCallbacks()


@pytest.fixture
def registry():
    """Registry with a single core ``echo`` tool."""
    return ToolRegistry(
        [
            FunctionTool(
                echo,
                parameters={"type": "object", "properties": {"text": {"type": "string"}}},
                priority=ToolPriority.CORE,
            )
        ]
    )


@pytest.fixture
def fast_config():
    """AgentConfig with zero backoff so retry tests do not sleep."""
    return AgentConfig(base_retry_delay=0.0, max_retry_delay=0.0, retry_jitter=0.0)
