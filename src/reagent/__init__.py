"""
Reagent: a provider-agnostic ReAct agent runtime core.

Primary entry point::

    from reagent import Agent, LiteLLMProvider, ToolRegistry

    agent = Agent(provider=LiteLLMProvider("gpt-4o-mini"), tools=ToolRegistry())
    answer = await agent.run("Hello!")
"""

from reagent.agent import Agent, RefusalFilter
from reagent.context import HistoryTrimmer, SystemPromptBuilder, TrimResult
from reagent.errors import (
    AgentError,
    AgentErrorCode,
    HistoryInvariantError,
    MaxIterationsError,
    NoProviderError,
    ProviderError,
    ProviderTransientError,
    ProviderUnavailableError,
)
from reagent.events import AgentCallbacks, AgentEvent, EventBus
from reagent.history import ConversationHistory, dump_turns, load_turns
from reagent.models import (
    AgentConfig,
    ContextStats,
    StreamChunk,
    TokenBudget,
    ToolCall,
    ToolDefinition,
    ToolResult,
    Turn,
    make_id,
)
from reagent.providers import LiteLLMProvider, LLMProvider
from reagent.tokens import TokenEstimator
from reagent.tools import (
    FunctionTool,
    Tool,
    ToolDispatcher,
    ToolError,
    ToolErrorKind,
    ToolPriority,
    ToolRegistry,
    TypedTool,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Agent",
    "RefusalFilter",
    "make_id",
    # Config
    "AgentConfig",
    "TokenBudget",
    # Models
    "Turn",
    "ToolCall",
    "ToolResult",
    "ToolDefinition",
    "StreamChunk",
    "ContextStats",
    # History and context
    "ConversationHistory",
    "dump_turns",
    "load_turns",
    "HistoryTrimmer",
    "TrimResult",
    "SystemPromptBuilder",
    "TokenEstimator",
    # Errors
    "AgentError",
    "AgentErrorCode",
    "NoProviderError",
    "MaxIterationsError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderTransientError",
    "HistoryInvariantError",
    # Providers
    "LLMProvider",
    "LiteLLMProvider",
    # Tools
    "Tool",
    "TypedTool",
    "FunctionTool",
    "ToolDispatcher",
    "ToolRegistry",
    "ToolError",
    "ToolErrorKind",
    "ToolPriority",
    # Events
    "AgentCallbacks",
    "AgentEvent",
    "EventBus",
]
