"""Reagent data models."""

from reagent.models.config import AgentConfig, TokenBudget
from reagent.models.message import (
    Role,
    StreamChunk,
    ToolCall,
    ToolDefinition,
    ToolResult,
    Turn,
    make_id,
)
from reagent.models.snapshot import CRITICAL_THRESHOLD, NEAR_LIMIT_THRESHOLD, ContextStats

__all__ = [
    # Config
    "AgentConfig",
    "TokenBudget",
    # Turns
    "Role",
    "Turn",
    "ToolCall",
    "ToolResult",
    "ToolDefinition",
    "StreamChunk",
    "make_id",
    # Snapshot
    "ContextStats",
    "NEAR_LIMIT_THRESHOLD",
    "CRITICAL_THRESHOLD",
]
