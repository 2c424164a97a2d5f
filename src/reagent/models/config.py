"""Configuration models for Reagent agents and components."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TokenBudget(BaseModel):
    """
    Fixed context window partitioned into named reserves.

    The remainder after the system-prompt, tool-schema and response reserves
    is what conversation history may occupy. Defaults describe a small
    on-device model with a 4,096 token window shared by input and output.
    """

    model_config = ConfigDict(frozen=True)

    total_context_window: int = Field(
        default=4_096,
        ge=256,
        description="Total input + output token capacity of the reasoning engine.",
    )
    system_reserve: int = Field(
        default=500,
        ge=0,
        description="Tokens reserved for system instructions.",
    )
    tool_schema_reserve: int = Field(
        default=400,
        ge=0,
        description="Tokens reserved for tool schemas (~100 per advertised tool).",
    )
    response_reserve: int = Field(
        default=1_200,
        ge=0,
        description="Tokens reserved for the model's own response.",
    )

    @model_validator(mode="after")
    def validate_remainder(self) -> TokenBudget:
        reserved = self.system_reserve + self.tool_schema_reserve + self.response_reserve
        if reserved >= self.total_context_window:
            raise ValueError(
                f"reserves ({reserved}) must be strictly less than "
                f"total_context_window ({self.total_context_window})"
            )
        return self

    @property
    def max_history_tokens(self) -> int:
        """Tokens available for conversation history."""
        return (
            self.total_context_window
            - self.system_reserve
            - self.tool_schema_reserve
            - self.response_reserve
        )

    def fits(self, token_count: int) -> bool:
        """Return True if token_count fits within the history remainder."""
        return token_count <= self.max_history_tokens


class AgentConfig(BaseModel):
    """
    Immutable per-agent parameters.

    Example::

        config = AgentConfig(
            max_iterations=5,
            budget=TokenBudget(total_context_window=8_192),
        )
    """

    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum ReAct iterations (tool rounds) per user turn.",
    )

    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total provider call attempts per ReAct step, first call included. "
        "Only transient errors are retried.",
    )

    base_retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds; multiplied by 2**attempt for exponential backoff.",
    )

    max_retry_delay: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound on any single backoff delay, jitter included.",
    )

    retry_jitter: float = Field(
        default=0.5,
        ge=0.0,
        description="Upper bound of the uniform random jitter added to each delay.",
    )

    budget: TokenBudget = Field(default_factory=TokenBudget)

    refusal_fallback_enabled: bool = True
    """Replace bare model refusals with a friendly redirect."""

    strict_history: bool = False
    """Raise on history invariant violations instead of dropping the offending turn."""

    @model_validator(mode="after")
    def validate_retry_delays(self) -> AgentConfig:
        if self.base_retry_delay > self.max_retry_delay:
            raise ValueError("base_retry_delay must not exceed max_retry_delay")
        return self

    @classmethod
    def default(cls) -> AgentConfig:
        """Return a config instance with all defaults."""
        return cls()
