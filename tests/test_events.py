"""Tests for the event bus and callback defaults."""

from __future__ import annotations

import asyncio

from reagent.events.bus import AgentEvent, EventBus
from reagent.events.callbacks import AgentCallbacks


class TestEventBus:
    def test_sync_handler_called_inline(self):
        bus = EventBus()
        received = []
        bus.subscribe(AgentEvent.HISTORY_TRIMMED, lambda e, p: received.append((e, p)))

        bus.publish(AgentEvent.HISTORY_TRIMMED, {"removed": 2})
        bus.publish(AgentEvent.HISTORY_RESET, {"provider_session": False})

        assert received == [(AgentEvent.HISTORY_TRIMMED, {"removed": 2})]

    def test_subscribe_all(self, event_bus):
        event_bus.publish(AgentEvent.RUN_STARTED, {"run_id": "run_1"})
        event_bus.publish(AgentEvent.RUN_COMPLETED, {"run_id": "run_1"})
        assert [e for e, _ in event_bus.collected] == [
            AgentEvent.RUN_STARTED,
            AgentEvent.RUN_COMPLETED,
        ]

    def test_handler_error_does_not_propagate(self):
        bus = EventBus()
        received = []

        def broken(event, payload):
            raise RuntimeError("handler bug")

        bus.subscribe(AgentEvent.TOOL_FAILED, broken)
        bus.subscribe(AgentEvent.TOOL_FAILED, lambda e, p: received.append(p))

        bus.publish(AgentEvent.TOOL_FAILED, {"tool": "x"})

        assert received == [{"tool": "x"}]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []

        def handler(event, payload):
            received.append(payload)

        bus.subscribe(AgentEvent.RUN_FAILED, handler)
        bus.unsubscribe(AgentEvent.RUN_FAILED, handler)
        bus.unsubscribe(AgentEvent.RUN_FAILED, handler)
        bus.publish(AgentEvent.RUN_FAILED, {})

        assert received == []

    async def test_async_handler_scheduled(self):
        bus = EventBus()
        done = asyncio.Event()

        async def handler(event, payload):
            done.set()

        bus.subscribe(AgentEvent.PROVIDER_RETRY, handler)
        bus.publish(AgentEvent.PROVIDER_RETRY, {"attempt": 1})

        await asyncio.wait_for(done.wait(), timeout=1.0)

    def test_async_handler_without_loop_is_skipped(self):
        bus = EventBus()
        calls = []

        async def handler(event, payload):
            calls.append(payload)

        bus.subscribe(AgentEvent.RUN_STARTED, handler)
        bus.publish(AgentEvent.RUN_STARTED, {})

        assert calls == []

    def test_event_values_are_stable(self):
        assert AgentEvent.HISTORY_AGGRESSIVE_TRIM == "history.aggressive_trim"
        assert str(AgentEvent.RUN_FAILED) == "run.failed"


def test_callbacks_default_to_no_ops():
    callbacks = AgentCallbacks()
    callbacks.on_thinking()
    callbacks.on_tool_call("echo", "{}")
    callbacks.on_tool_result("echo", "ok", True)
    callbacks.on_stream_chunk("text")
    callbacks.on_response("done")
    callbacks.on_error(RuntimeError("x"))
