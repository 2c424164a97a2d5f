"""Typed payload definitions for each AgentEvent.

Usage example::

    from reagent.events.bus import AgentEvent, EventBus
    from reagent.events.payloads import ToolFailedPayload

    def on_tool_failed(event: AgentEvent, payload: ToolFailedPayload) -> None:
        print(f"{payload['tool']} failed ({payload['kind']}): {payload['error']}")

    bus.subscribe(AgentEvent.TOOL_FAILED, on_tool_failed)  # type: ignore[arg-type]
"""

from __future__ import annotations

from typing import TypedDict

# ── Run lifecycle ─────────────────────────────────────────────────────────────


class RunStartedPayload(TypedDict):
    """Payload for :attr:`AgentEvent.RUN_STARTED`."""

    run_id: str
    message_preview: str
    """First 50 characters of the user's text."""


class RunCompletedPayload(TypedDict):
    """Payload for :attr:`AgentEvent.RUN_COMPLETED`."""

    run_id: str
    iterations: int
    """Tool rounds executed before the final answer."""
    provider_calls: int
    """Provider streams opened, retries included."""


class RunFailedPayload(TypedDict):
    """Payload for :attr:`AgentEvent.RUN_FAILED`."""

    run_id: str
    code: str
    """An :class:`~reagent.errors.AgentErrorCode` value, or the exception class name."""
    error: str


class ProviderRetryPayload(TypedDict):
    """Payload for :attr:`AgentEvent.PROVIDER_RETRY`."""

    run_id: str
    attempt: int
    """1-based number of the retry about to happen."""
    delay: float
    error: str


# ── Tools ─────────────────────────────────────────────────────────────────────


class ToolFailedPayload(TypedDict):
    """Payload for :attr:`AgentEvent.TOOL_FAILED`."""

    run_id: str
    tool: str
    kind: str
    """A :class:`~reagent.tools.base.ToolErrorKind` value."""
    error: str


# ── History ───────────────────────────────────────────────────────────────────


class HistoryTrimmedPayload(TypedDict):
    """Payload for :attr:`AgentEvent.HISTORY_TRIMMED` and ``HISTORY_AGGRESSIVE_TRIM``."""

    removed: int
    tokens_before: int
    tokens_after: int


class HistoryResetPayload(TypedDict):
    """Payload for :attr:`AgentEvent.HISTORY_RESET`."""

    provider_session: bool
    """True when the provider's session state was discarded as well."""
