"""ReAct loop controller."""

from reagent.agent.loop import Agent
from reagent.agent.refusal import DEFAULT_REFUSAL_PHRASES, DEFAULT_REFUSAL_REDIRECT, RefusalFilter
from reagent.agent.retry import backoff_delay, is_retryable

__all__ = [
    "Agent",
    "DEFAULT_REFUSAL_PHRASES",
    "DEFAULT_REFUSAL_REDIRECT",
    "RefusalFilter",
    "backoff_delay",
    "is_retryable",
]
