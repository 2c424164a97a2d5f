"""Observability: callbacks and the lifecycle event bus."""

from reagent.events.bus import AgentEvent, EventBus, Handler
from reagent.events.callbacks import AgentCallbacks
from reagent.events.payloads import (
    HistoryResetPayload,
    HistoryTrimmedPayload,
    ProviderRetryPayload,
    RunCompletedPayload,
    RunFailedPayload,
    RunStartedPayload,
    ToolFailedPayload,
)

__all__ = [
    "AgentCallbacks",
    "AgentEvent",
    "EventBus",
    "Handler",
    "HistoryResetPayload",
    "HistoryTrimmedPayload",
    "ProviderRetryPayload",
    "RunCompletedPayload",
    "RunFailedPayload",
    "RunStartedPayload",
    "ToolFailedPayload",
]
