"""Provider boundary: the contract for streaming a response from a reasoning engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence

from reagent.models.message import StreamChunk, ToolCall, ToolDefinition, Turn


class LLMProvider(ABC):
    """
    Base class for language-model transports.

    A provider turns the full turn history plus the enabled tool schemas into
    a stream of :class:`~reagent.models.message.StreamChunk` objects. Text
    fragments should be yielded as soon as they arrive; tool-call requests may
    arrive in any chunk; the final chunk sets ``is_complete``.

    Providers that run tools inside their own runtime (on-device sessions with
    native tool support) set ``handles_tools_natively`` and report completed
    tool calls for information only.

    Transient failures (rate limits, timeouts, dropped connections) should be
    raised as :class:`~reagent.errors.ProviderTransientError` so the agent
    retries them.
    """

    name: str = "provider"

    max_tools: int = 10
    """Maximum number of tool schemas this provider handles well per call."""

    handles_tools_natively: bool = False

    @property
    def is_available(self) -> bool:
        """Whether the provider can serve requests right now."""
        return True

    @property
    def native_tool_tokens(self) -> int:
        """Tokens consumed by natively handled tool calls in the current session."""
        return 0

    @abstractmethod
    def stream(
        self,
        turns: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion for ``turns``."""

    async def complete(
        self,
        turns: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> Turn:
        """Non-streaming convenience: drain :meth:`stream` into an assistant turn."""
        text = ""
        calls: list[ToolCall] = []
        async for chunk in self.stream(turns, tools):
            if chunk.text:
                text += chunk.text
            if chunk.tool_calls:
                calls.extend(chunk.tool_calls)
        return Turn.assistant(text, calls or None)

    async def reset_session(self) -> None:
        """Discard any server-side or on-device session state. Stateless transports no-op."""
        return None
