"""Cloud transport backed by litellm's chat-completions streaming API."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

import structlog

from reagent.errors import ProviderError, ProviderTransientError
from reagent.models.message import StreamChunk, ToolCall, ToolDefinition, Turn, make_id
from reagent.providers.base import LLMProvider

MOCK_ENV_VAR = "REAGENT_MOCK_LLM"


def to_chat_messages(turns: Sequence[Turn]) -> list[dict[str, Any]]:
    """Render turns in the chat-completions message format."""
    messages: list[dict[str, Any]] = []
    for turn in turns:
        if turn.role == "tool":
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": turn.tool_call_id,
                    "name": turn.tool_name,
                    "content": turn.content,
                }
            )
        elif turn.role == "assistant" and turn.tool_calls:
            messages.append(
                {
                    "role": "assistant",
                    "content": turn.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": call.arguments},
                        }
                        for call in turn.tool_calls
                    ],
                }
            )
        else:
            messages.append({"role": turn.role, "content": turn.content})
    return messages


class _ToolCallAccumulator:
    """Reassembles tool calls streamed as per-index deltas."""

    def __init__(self) -> None:
        self._calls: dict[int, dict[str, str]] = {}

    def add(self, delta: Any) -> None:
        index = getattr(delta, "index", None) or 0
        slot = self._calls.setdefault(index, {"id": "", "name": "", "arguments": ""})
        if getattr(delta, "id", None):
            slot["id"] = delta.id
        function = getattr(delta, "function", None)
        if function is not None:
            if getattr(function, "name", None):
                slot["name"] = function.name
            if getattr(function, "arguments", None):
                slot["arguments"] += function.arguments

    def calls(self) -> tuple[ToolCall, ...]:
        return tuple(
            ToolCall(
                id=slot["id"] or make_id("call"),
                name=slot["name"],
                arguments=slot["arguments"] or "{}",
            )
            for _, slot in sorted(self._calls.items())
            if slot["name"]
        )


class LiteLLMProvider(LLMProvider):
    """
    Streams completions from any litellm-supported model.

    Tool calls are returned to the agent for dispatch (not handled natively).
    Set ``REAGENT_MOCK_LLM=1`` to get a deterministic offline response instead
    of a network call.

    Example::

        provider = LiteLLMProvider("openrouter/anthropic/claude-sonnet-4")
        agent = Agent(provider=provider, tools=registry)
    """

    handles_tools_natively = False

    def __init__(
        self,
        model: str,
        *,
        max_tools: int = 10,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        **completion_kwargs: Any,
    ) -> None:
        self.model = model
        self.name = f"litellm:{model}"
        self.max_tools = max_tools
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._completion_kwargs = completion_kwargs
        self._logger = structlog.get_logger("reagent.providers").bind(provider=self.name)

    async def stream(
        self,
        turns: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> AsyncIterator[StreamChunk]:
        if os.environ.get(MOCK_ENV_VAR) == "1":
            async for chunk in self._mock_stream(turns):
                yield chunk
            return

        import litellm

        transient = (
            litellm.RateLimitError,
            litellm.Timeout,
            litellm.APIConnectionError,
            litellm.ServiceUnavailableError,
            litellm.InternalServerError,
        )

        call_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": to_chat_messages(turns),
            "stream": True,
            **self._completion_kwargs,
        }
        if tools:
            call_kwargs["tools"] = [tool.to_openai() for tool in tools]
        if self._temperature is not None:
            call_kwargs["temperature"] = self._temperature
        if self._max_tokens is not None:
            call_kwargs["max_tokens"] = self._max_tokens
        if self._timeout is not None:
            call_kwargs["timeout"] = self._timeout

        accumulator = _ToolCallAccumulator()
        try:
            async for chunk in await litellm.acompletion(**call_kwargs):
                delta = chunk.choices[0].delta if chunk.choices else None
                if delta is None:
                    continue
                if delta.content:
                    yield StreamChunk(text=delta.content)
                for call_delta in getattr(delta, "tool_calls", None) or []:
                    accumulator.add(call_delta)
        except transient as exc:
            self._logger.warning("provider_transient_error", error=str(exc))
            raise ProviderTransientError(self.name, str(exc), cause=exc) from exc
        except litellm.APIError as exc:
            raise ProviderError(self.name, str(exc), cause=exc) from exc

        calls = accumulator.calls()
        yield StreamChunk(tool_calls=calls or None, is_complete=True)

    async def _mock_stream(self, turns: Sequence[Turn]) -> AsyncIterator[StreamChunk]:
        """Deterministic offline response for demos and tests (REAGENT_MOCK_LLM=1)."""
        last_user = next((t.content for t in reversed(turns) if t.role == "user"), "Hello")
        mock_text = (
            f"[Mock LLM response to: {last_user[:100]}]\n"
            "This is a simulated response for demonstration purposes."
        )
        for word in mock_text.split(" "):
            await asyncio.sleep(0)
            yield StreamChunk(text=word + " ")
        yield StreamChunk(is_complete=True)
