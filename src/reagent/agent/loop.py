"""The ReAct loop controller: reason with the provider, act through tools, observe results."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any

import structlog

from reagent.agent.refusal import RefusalFilter
from reagent.agent.retry import backoff_delay, is_retryable
from reagent.context.system_prompt import SystemPromptBuilder
from reagent.context.trimmer import HistoryTrimmer, TrimResult
from reagent.errors import (
    MaxIterationsError,
    NoProviderError,
    ProviderTransientError,
    ProviderUnavailableError,
)
from reagent.events.bus import AgentEvent, EventBus
from reagent.events.callbacks import AgentCallbacks
from reagent.history.conversation import ConversationHistory
from reagent.models.config import AgentConfig
from reagent.models.message import ToolCall, ToolDefinition, ToolResult, Turn, make_id
from reagent.models.snapshot import ContextStats
from reagent.providers.base import LLMProvider
from reagent.tokens.estimator import TokenEstimator
from reagent.tools.base import (
    ToolArgumentError,
    ToolDispatcher,
    ToolError,
    ToolExecutionError,
)
from reagent.tools.registry import ToolRegistry

# Models confused about tool calling sometimes stream the literal string "null".
_NULL_FRAGMENT = "null"


class Agent:
    """
    Drives one user turn at a time through the ReAct loop.

    Per call to :meth:`run`:

    1. Append the user turn.
    2. Trim history to the token budget, then stream a response from the
       provider, retrying transient failures with exponential backoff.
    3. Plain text (or a provider that runs tools natively) ends the run.
    4. Otherwise append the assistant's tool requests, dispatch each call in
       order, append one tool turn per call (failures are fed back to the
       model as JSON error payloads) and go back to 2.
    5. Fail with :class:`~reagent.errors.MaxIterationsError` once
       ``max_iterations`` tool rounds pass without a final answer.

    An agent owns its history exclusively and is not safe for overlapping
    ``run()`` calls; use one agent per conversation.

    Example::

        agent = Agent(
            provider=LiteLLMProvider("gpt-4o-mini"),
            tools=ToolRegistry([Calculator()]),
            system_prompt="You are a concise assistant.",
        )
        answer = await agent.run("What's 20% of 85?")
    """

    def __init__(
        self,
        *,
        provider: LLMProvider | None = None,
        tools: ToolDispatcher | None = None,
        config: AgentConfig | None = None,
        callbacks: AgentCallbacks | None = None,
        system_prompt: str | None = None,
        estimator: TokenEstimator | None = None,
        event_bus: EventBus | None = None,
        refusal_filter: RefusalFilter | None = None,
    ) -> None:
        self._config = config or AgentConfig()
        self._provider = provider
        self._tools: ToolDispatcher = tools if tools is not None else ToolRegistry()
        self.callbacks = callbacks or AgentCallbacks()
        self._estimator = estimator or TokenEstimator()
        self._event_bus = event_bus or EventBus()
        self._refusal = refusal_filter or RefusalFilter()
        self._history = ConversationHistory(strict=self._config.strict_history)
        self._trimmer = HistoryTrimmer(self._estimator, self._config.budget)
        self._trimmed_count = 0
        self._running = False
        self._logger = structlog.get_logger("reagent.agent")
        if system_prompt is not None:
            self._history.set_system(system_prompt)

    # ── Configuration ─────────────────────────────────────────────────────────

    def set_provider(self, provider: LLMProvider | None) -> None:
        self._provider = provider

    def set_system_prompt(self, prompt: str) -> None:
        """Install or replace the system turn verbatim."""
        self._history.set_system(prompt)

    def build_system_prompt(self, instructions: str, *, memory_summary: str | None = None) -> str:
        """
        Assemble and install a system prompt with disabled-tool and memory sections.

        Returns:
            The installed prompt.
        """
        disabled: list[tuple[str, str]] = []
        if isinstance(self._tools, ToolRegistry):
            disabled = self._tools.disabled_descriptions()
        prompt = SystemPromptBuilder(self._estimator).build(
            instructions, disabled_tools=disabled, memory_summary=memory_summary
        )
        self._history.set_system(prompt)
        return prompt

    # ── The loop ──────────────────────────────────────────────────────────────

    async def run(self, user_text: str) -> str:
        """
        Run the ReAct loop for one user message.

        Args:
            user_text: The user's raw text.

        Returns:
            The final assistant text.

        Raises:
            NoProviderError: No provider configured (nothing is appended to history).
            ProviderUnavailableError: The provider reports itself unavailable.
            MaxIterationsError: The iteration ceiling was reached.
            Exception: A provider error that was not retryable, or the last
                transient error once retries are exhausted.
        """
        if self._running:
            raise RuntimeError("Agent.run() is already in progress for this agent")

        run_id = make_id("run")
        log = self._logger.bind(run_id=run_id)
        log.info("run_started", message_preview=user_text[:50])

        provider = self._provider
        if provider is None:
            error: Exception = NoProviderError()
            log.error("no_provider")
            self._fail(run_id, error)
            raise error
        if not provider.is_available:
            error = ProviderUnavailableError(provider.name, "provider is not available")
            self._fail(run_id, error)
            raise error

        self._running = True
        try:
            return await self._run_loop(provider, user_text, run_id)
        except Exception as exc:
            log.error("run_failed", error=str(exc), error_type=type(exc).__name__)
            self._fail(run_id, exc)
            raise
        finally:
            self._running = False

    async def _run_loop(self, provider: LLMProvider, user_text: str, run_id: str) -> str:
        self._history.append(Turn.user(user_text))
        self._event_bus.publish(
            AgentEvent.RUN_STARTED, {"run_id": run_id, "message_preview": user_text[:50]}
        )

        tools = self._tools.definitions(provider.max_tools)
        native = provider.handles_tools_natively
        if native:
            self._logger.info("native_tool_handling", run_id=run_id, provider=provider.name)

        iterations = 0
        provider_calls = 0
        while True:
            if iterations >= self._config.max_iterations:
                self._logger.warning("max_iterations_reached", run_id=run_id, iterations=iterations)
                raise MaxIterationsError(iterations)

            self._fit_history()
            text, calls, attempts = await self._call_provider(provider, tools, run_id)
            provider_calls += attempts

            if native or not calls:
                if native and calls:
                    self._logger.info("native_tools_used", run_id=run_id, count=len(calls))
                return self._finish(text, run_id, iterations, provider_calls)

            self._history.append(Turn.assistant(text, calls))
            results = await self._dispatch_all(calls, run_id)
            self._logger.info(
                "tool_round_completed",
                run_id=run_id,
                iteration=iterations + 1,
                calls=len(results),
                failed=sum(1 for r in results if not r.success),
            )
            iterations += 1

    async def _call_provider(
        self,
        provider: LLMProvider,
        tools: Sequence[ToolDefinition],
        run_id: str,
    ) -> tuple[str, list[ToolCall], int]:
        """Stream one response, retrying transient failures. Returns (text, calls, attempts)."""
        max_retries = self._config.max_retries
        for attempt in range(max_retries):
            self._notify("on_thinking")
            try:
                text, calls = await self._consume_stream(provider, tools)
                return text, calls, attempt + 1
            except Exception as exc:
                if not is_retryable(exc) or attempt >= max_retries - 1:
                    raise
                delay = backoff_delay(
                    attempt,
                    self._config.base_retry_delay,
                    jitter=self._config.retry_jitter,
                    max_delay=self._config.max_retry_delay,
                )
                if isinstance(exc, ProviderTransientError) and exc.retry_after:
                    delay = min(max(delay, exc.retry_after), self._config.max_retry_delay)
                self._logger.info(
                    "provider_retry_scheduled",
                    run_id=run_id,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    delay=round(delay, 3),
                    error=str(exc),
                )
                self._event_bus.publish(
                    AgentEvent.PROVIDER_RETRY,
                    {"run_id": run_id, "attempt": attempt + 1, "delay": delay, "error": str(exc)},
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _consume_stream(
        self,
        provider: LLMProvider,
        tools: Sequence[ToolDefinition],
    ) -> tuple[str, list[ToolCall]]:
        fragments: list[str] = []
        # Keyed by call ID: providers may re-send calls cumulatively.
        calls: dict[str, ToolCall] = {}
        stream = provider.stream(self._history.turns, tools)
        try:
            async for chunk in stream:
                if chunk.text and chunk.text != _NULL_FRAGMENT:
                    fragments.append(chunk.text)
                    self._notify("on_stream_chunk", chunk.text)
                for call in chunk.tool_calls or ():
                    calls[call.id] = call
                if chunk.is_complete:
                    break
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return "".join(fragments), list(calls.values())

    async def _dispatch_all(self, calls: list[ToolCall], run_id: str) -> list[ToolResult]:
        results: list[ToolResult] = []
        for index, call in enumerate(calls):
            try:
                results.append(await self._dispatch(call, run_id))
            except asyncio.CancelledError:
                # Keep history valid: every requested call gets a tool turn.
                for pending in calls[index:]:
                    self._history.append(
                        Turn.tool(
                            pending.id,
                            pending.name,
                            ToolExecutionError("Cancelled", tool_name=pending.name).to_payload(),
                        )
                    )
                raise
        return results

    async def _dispatch(self, call: ToolCall, run_id: str) -> ToolResult:
        self._notify("on_tool_call", call.name, call.arguments)
        try:
            _check_arguments(call)
            output = await self._tools.dispatch(call.name, call.arguments)
        except ToolError as exc:
            error = exc
        except Exception as exc:
            error = ToolExecutionError(
                str(exc) or type(exc).__name__, tool_name=call.name, cause=exc
            )
        else:
            self._history.append(Turn.tool(call.id, call.name, output))
            self._notify("on_tool_result", call.name, output, True)
            self._logger.info("tool_completed", run_id=run_id, tool=call.name)
            return ToolResult(
                tool_call_id=call.id, tool_name=call.name, success=True, payload=output
            )

        payload = error.to_payload()
        self._logger.warning(
            "tool_failed", run_id=run_id, tool=call.name, kind=str(error.kind), error=error.message
        )
        self._event_bus.publish(
            AgentEvent.TOOL_FAILED,
            {"run_id": run_id, "tool": call.name, "kind": str(error.kind), "error": error.message},
        )
        self._history.append(Turn.tool(call.id, call.name, payload))
        self._notify("on_tool_result", call.name, payload, False)
        return ToolResult(
            tool_call_id=call.id,
            tool_name=call.name,
            success=False,
            payload=payload,
            error_kind=str(error.kind),
        )

    def _finish(self, text: str, run_id: str, iterations: int, provider_calls: int) -> str:
        final = self._refusal.apply(text) if self._config.refusal_fallback_enabled else text
        self._history.append(Turn.assistant(final))
        self._notify("on_response", final)
        self._event_bus.publish(
            AgentEvent.RUN_COMPLETED,
            {"run_id": run_id, "iterations": iterations, "provider_calls": provider_calls},
        )
        self._logger.info(
            "run_completed", run_id=run_id, iterations=iterations, provider_calls=provider_calls
        )
        return final

    def _fail(self, run_id: str, error: Exception) -> None:
        code = getattr(error, "code", None) or type(error).__name__
        self._notify("on_error", error)
        self._event_bus.publish(
            AgentEvent.RUN_FAILED, {"run_id": run_id, "code": str(code), "error": str(error)}
        )

    def _notify(self, hook: str, *args: Any) -> None:
        try:
            getattr(self.callbacks, hook)(*args)
        except Exception as exc:
            self._logger.error("callback_error", hook=hook, error=str(exc))

    # ── Trimming ──────────────────────────────────────────────────────────────

    def _fit_history(self) -> TrimResult:
        result = self._trimmer.fit(self._history)
        if result.changed:
            self._record_trim(result)
        return result

    def _record_trim(self, result: TrimResult) -> None:
        self._trimmed_count += result.removed_count
        event = AgentEvent.HISTORY_AGGRESSIVE_TRIM if result.aggressive else AgentEvent.HISTORY_TRIMMED
        self._event_bus.publish(
            event,
            {
                "removed": result.removed_count,
                "tokens_before": result.tokens_before,
                "tokens_after": result.tokens_after,
            },
        )

    def aggressive_trim(self) -> bool:
        """
        Collapse history to the system turn plus the most recent exchange.

        Returns:
            True if anything was discarded, False if there was nothing to trim.
        """
        tokens_before = self._trimmer.history_tokens(self._history)
        removed = self._trimmer.aggressive_trim(self._history)
        if removed:
            self._record_trim(
                TrimResult(
                    removed_count=removed,
                    tokens_before=tokens_before,
                    tokens_after=self._trimmer.history_tokens(self._history),
                    aggressive=True,
                )
            )
        return removed > 0

    # ── Session lifecycle ─────────────────────────────────────────────────────

    def reset(self) -> None:
        """Clear history down to the system turn."""
        self._reset_local()
        self._event_bus.publish(AgentEvent.HISTORY_RESET, {"provider_session": False})

    async def reset_for_new_conversation(self) -> None:
        """Clear history and discard the provider's session state."""
        self._reset_local()
        if self._provider is not None:
            await self._provider.reset_session()
        self._event_bus.publish(AgentEvent.HISTORY_RESET, {"provider_session": True})
        self._logger.info("agent_reset_for_new_conversation")

    def _reset_local(self) -> None:
        self._history.clear(keep_system=True)
        self._trimmed_count = 0

    def load_messages(self, turns: Sequence[Turn]) -> int:
        """
        Replace history with saved turns, keeping the current system turn.

        Returns:
            Number of saved turns dropped because they broke a history invariant.
        """
        dropped = self._history.replace(turns, keep_system=True)
        self._logger.info("messages_loaded", count=len(turns), dropped=dropped)
        return dropped

    def get_history(self) -> list[Turn]:
        """Full history including the system turn."""
        return self._history.turns

    def get_messages_for_save(self) -> list[Turn]:
        """History without the system turn, for persistence."""
        return self._history.non_system()

    def get_context_stats(self) -> ContextStats:
        """Snapshot of estimated token usage against the history budget."""
        by_role = {"system": 0, "user": 0, "assistant": 0, "tool": 0}
        turns = self._history.turns
        for turn in turns:
            by_role[turn.role] += self._estimator.estimate(turn.content)
        if self._provider is not None:
            by_role["tool"] += self._provider.native_tool_tokens

        max_tokens = self._config.budget.max_history_tokens
        current = by_role["user"] + by_role["assistant"] + by_role["tool"]
        return ContextStats(
            current_tokens=current,
            max_tokens=max_tokens,
            usage_percent=min(1.0, current / max_tokens),
            system_tokens=by_role["system"],
            user_tokens=by_role["user"],
            assistant_tokens=by_role["assistant"],
            tool_tokens=by_role["tool"],
            message_count=len(turns),
            trimmed_count=self._trimmed_count,
        )

    # ── Accessors ─────────────────────────────────────────────────────────────

    @property
    def provider(self) -> LLMProvider | None:
        return self._provider

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def event_bus(self) -> EventBus:
        """The event bus for this agent. Subscribe to monitor lifecycle events."""
        return self._event_bus

    @property
    def trimmed_count(self) -> int:
        """Turns discarded by trimming since the last reset."""
        return self._trimmed_count

    @property
    def is_running(self) -> bool:
        return self._running


def _check_arguments(call: ToolCall) -> None:
    """Reject tool calls whose arguments are not a JSON object."""
    # Unparsable arguments are fed back like any dispatch failure, tagged
    # argument_invalid so callbacks can tell them from tool crashes.
    try:
        parsed = json.loads(call.arguments or "{}")
    except json.JSONDecodeError as exc:
        raise ToolArgumentError(
            f"Malformed arguments from model: {exc.msg}", tool_name=call.name, cause=exc
        ) from exc
    if not isinstance(parsed, dict):
        raise ToolArgumentError("Arguments must be a JSON object", tool_name=call.name)
