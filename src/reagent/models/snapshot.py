"""Read-only context usage snapshot returned by ``Agent.get_context_stats()``."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

NEAR_LIMIT_THRESHOLD = 0.80
CRITICAL_THRESHOLD = 0.95


class ContextStats(BaseModel):
    """Estimated context window usage, broken down by role.

    ``current_tokens`` covers history only (user + assistant + tool); the
    system turn is reported separately because it is paid for out of the
    system reserve, not the history remainder.

    Attributes:
        current_tokens: Estimated history tokens.
        max_tokens: History remainder of the active token budget.
        usage_percent: ``current_tokens / max_tokens`` clamped to ``[0, 1]``.
        system_tokens: Tokens in the system turn.
        user_tokens: Tokens across user turns.
        assistant_tokens: Tokens across assistant turns.
        tool_tokens: Tokens across tool turns plus natively handled tool usage.
        message_count: Number of turns, system included.
        trimmed_count: Turns discarded by trimming since the last reset.
    """

    model_config = ConfigDict(frozen=True)

    current_tokens: int = Field(default=0, ge=0)
    max_tokens: int = Field(default=1, ge=1)
    usage_percent: float = Field(default=0.0, ge=0.0, le=1.0)
    system_tokens: int = Field(default=0, ge=0)
    user_tokens: int = Field(default=0, ge=0)
    assistant_tokens: int = Field(default=0, ge=0)
    tool_tokens: int = Field(default=0, ge=0)
    message_count: int = Field(default=0, ge=0)
    trimmed_count: int = Field(default=0, ge=0)

    @property
    def is_near_limit(self) -> bool:
        return self.usage_percent >= NEAR_LIMIT_THRESHOLD

    @property
    def is_critical(self) -> bool:
        return self.usage_percent >= CRITICAL_THRESHOLD

    @classmethod
    def empty(cls, max_tokens: int) -> ContextStats:
        """Stats for a conversation with no turns."""
        return cls(max_tokens=max_tokens)
