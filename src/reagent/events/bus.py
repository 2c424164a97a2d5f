"""In-process pub/sub event bus for agent lifecycle events."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

import structlog

Handler = Callable[["AgentEvent", dict[str, Any]], None | Awaitable[None]]


class AgentEvent(StrEnum):
    """All event types published by the agent core.

    Typed payload definitions for each event live in
    :mod:`reagent.events.payloads`.

    ``RUN_STARTED``
        :class:`~reagent.events.payloads.RunStartedPayload`: ``run_id``, ``message_preview``

    ``RUN_COMPLETED``
        :class:`~reagent.events.payloads.RunCompletedPayload`: ``run_id``,
        ``iterations``, ``provider_calls``

    ``RUN_FAILED``
        :class:`~reagent.events.payloads.RunFailedPayload`: ``run_id``, ``code``, ``error``

    ``PROVIDER_RETRY``
        :class:`~reagent.events.payloads.ProviderRetryPayload`: ``run_id``,
        ``attempt``, ``delay``, ``error``

    ``TOOL_FAILED``
        :class:`~reagent.events.payloads.ToolFailedPayload`: ``run_id``,
        ``tool``, ``kind``, ``error``

    ``HISTORY_TRIMMED``, ``HISTORY_AGGRESSIVE_TRIM``
        :class:`~reagent.events.payloads.HistoryTrimmedPayload`: ``removed``,
        ``tokens_before``, ``tokens_after``

    ``HISTORY_RESET``
        :class:`~reagent.events.payloads.HistoryResetPayload`: ``provider_session``
    """

    RUN_STARTED = "run.started"
    RUN_COMPLETED = "run.completed"
    RUN_FAILED = "run.failed"

    PROVIDER_RETRY = "provider.retry"

    TOOL_FAILED = "tool.failed"

    HISTORY_TRIMMED = "history.trimmed"
    HISTORY_AGGRESSIVE_TRIM = "history.aggressive_trim"
    HISTORY_RESET = "history.reset"


class EventBus:
    """
    Simple in-process pub/sub event bus.

    - Sync handlers are called inline within ``publish()``.
    - Async handlers are scheduled via ``asyncio.create_task()`` (fire-and-forget).
    - Handler exceptions are logged but never propagate to the publisher.
    - Each ``Agent`` owns its own ``EventBus`` unless one is injected; share one
      instance across agents for cross-conversation monitoring.

    Example::

        bus = EventBus()

        def on_trim(event, payload):
            print(f"Dropped {payload['removed']} turns")

        bus.subscribe(AgentEvent.HISTORY_TRIMMED, on_trim)
    """

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self._handlers: dict[AgentEvent, list[Handler]] = {}
        self._global_handlers: list[Handler] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._logger = logger or structlog.get_logger("reagent.events")

    def subscribe(self, event: AgentEvent, handler: Handler) -> None:
        """Register a handler ``(event, payload)`` for one event type. May be sync or async."""
        self._handlers.setdefault(event, []).append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Register a handler for ALL event types."""
        self._global_handlers.append(handler)

    def unsubscribe(self, event: AgentEvent, handler: Handler) -> None:
        """Remove a previously registered handler. No-op if not found."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: AgentEvent, payload: dict[str, Any]) -> None:
        """
        Publish an event to all registered handlers.

        Sync handlers are called immediately in registration order. Async
        handlers are scheduled as background tasks. Exceptions from any handler
        are logged and swallowed.
        """
        all_handlers = list(self._handlers.get(event, [])) + list(self._global_handlers)
        for handler in all_handlers:
            try:
                result = handler(event, payload)
                if asyncio.iscoroutine(result):
                    self._schedule(result)
            except Exception as exc:
                self._logger.error(
                    "event_handler_error",
                    event_type=str(event),
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(exc),
                )

    def _schedule(self, coro: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running event loop: the async handler cannot run.
            coro.close()
            self._logger.debug("event_async_handler_skipped")
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
